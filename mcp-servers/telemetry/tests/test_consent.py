"""Tests for the consent policy."""

from kingdom_telemetry import consent
from kingdom_telemetry.models import UserPreferences


def test_absent_preferences_fail_open():
    assert consent.allowed(None) is True
    assert consent.allowed({}) is True
    assert consent.allowed(UserPreferences()) is True


def test_explicit_opt_out_denies():
    assert consent.allowed({"allowAnonymizedData": False}) is False
    assert consent.allowed({"allow_anonymized_data": False}) is False
    assert consent.allowed(UserPreferences(allowAnonymizedData=False)) is False


def test_explicit_opt_in_allows():
    assert consent.allowed({"allowAnonymizedData": True}) is True
    assert consent.allowed(UserPreferences(allow_anonymized_data=True)) is True


def test_unknown_values_fail_open():
    """Only the boolean False suppresses telemetry."""
    assert consent.allowed({"allowAnonymizedData": "no"}) is True
    assert consent.allowed({"allowAnonymizedData": 0}) is True
    assert consent.allowed({"allowAnonymizedData": None}) is True
    assert consent.allowed({"someOtherSetting": False}) is True
    assert consent.allowed("not a settings object") is True


def test_allowed_does_not_mutate_preferences():
    prefs = {"allowAnonymizedData": False, "theme": "dark"}
    consent.allowed(prefs)
    assert prefs == {"allowAnonymizedData": False, "theme": "dark"}


def test_snapshot_only_carries_stated_preference():
    assert consent.snapshot(None) is None
    assert consent.snapshot({"theme": "dark"}) is None
    assert consent.snapshot({"allowAnonymizedData": "yes"}) is None
    assert consent.snapshot({"allow_anonymized_data": True}) == {"allowAnonymizedData": True}
    assert consent.snapshot(UserPreferences(allowAnonymizedData=False)) == {"allowAnonymizedData": False}

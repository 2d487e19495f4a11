"""Consent policy: may an interaction event be emitted for this user?

The decision is fail-open. Only an explicit ``False`` for the anonymized-data
preference suppresses telemetry; an absent or unrecognised value allows it.
"""

from collections.abc import Mapping
from typing import Any, Optional, Union

from .models import UserPreferences

PREFERENCE_KEYS = ("allowAnonymizedData", "allow_anonymized_data")

Preferences = Optional[Union[UserPreferences, Mapping[str, Any]]]


def _preference_value(preferences: Preferences) -> Any:
    if isinstance(preferences, UserPreferences):
        return preferences.allow_anonymized_data
    if isinstance(preferences, Mapping):
        for key in PREFERENCE_KEYS:
            if key in preferences:
                return preferences[key]
    return None


def allowed(preferences: Preferences) -> bool:
    """Return whether telemetry may be emitted given a settings snapshot."""
    return _preference_value(preferences) is not False


def snapshot(preferences: Preferences) -> Optional[dict]:
    """Wire form of a preference snapshot, or None when nothing was stated."""
    value = _preference_value(preferences)
    if not isinstance(value, bool):
        return None
    return {"allowAnonymizedData": value}

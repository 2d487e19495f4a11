"""Interaction telemetry core for the Kingdom apps.

Consent-gated capture, boundary validation, an append-only SQLite event log,
and a read-only query surface for operators.
"""

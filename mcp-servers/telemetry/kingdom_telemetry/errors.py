"""Exceptions raised by the telemetry core."""


class TelemetryError(Exception):
    """Base class for telemetry pipeline errors."""


class StoreUnavailableError(TelemetryError):
    """The durable event log could not be reached within its time bound."""

"""Failure conditions raised across the resolution and computation pipeline."""

GENERIC_COMPUTATION_ERROR = "Failed to calculate panchanga"


class PanchangaError(Exception):
    """Base class for pipeline failures."""


class LocationUnavailable(PanchangaError):
    """Positioning capability absent, denied, or failed."""


class GeocodingFailed(PanchangaError):
    """Reverse geocoding lookup failed. Never reaches the user."""


class ComputationFailed(PanchangaError):
    """Remote computation error, carrying the user-facing message."""

    def __init__(self, message: str = GENERIC_COMPUTATION_ERROR, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MissingLocation(PanchangaError):
    """Manual trigger with no location selected."""

    def __init__(self, message: str = "Please select a location first"):
        super().__init__(message)
        self.message = message

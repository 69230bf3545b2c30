"""Custom exception hierarchy for the Exterra estimate pipeline."""

from __future__ import annotations


class ExterraError(Exception):
    """Base exception for all Exterra errors."""


class InvalidRequestError(ExterraError):
    """Raised when a remodel request is structurally invalid."""


class GeocodingError(ExterraError):
    """Raised when an address cannot be resolved to coordinates."""


class UpstreamServiceError(ExterraError):
    """Raised when an external service is unreachable or returns bad data."""


class PersistenceError(ExterraError):
    """Raised when a record or image cannot be stored."""


class RecordNotFoundError(ExterraError):
    """Raised when a remodel record does not exist."""


class PipelineError(ExterraError):
    """Raised when a pipeline stage fails unexpectedly.

    ``stage`` names the stage that was running when the failure happened.
    """

    def __init__(self, message: str, stage: str) -> None:
        super().__init__(message)
        self.stage = stage

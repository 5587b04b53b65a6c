from typing import Optional


class MarkerError(Exception):
    """Base class for every marker lifecycle error."""


class ValidationError(MarkerError):
    """A required field is missing, blank or out of range. Raised before any remote call."""


class NotFoundError(MarkerError):
    """The target marker does not exist (any more)."""

    def __init__(self, marker_id: str, message: str = "Marker not found"):
        super().__init__(f"{message}: {marker_id}")
        self.marker_id = marker_id


class RemoteFailure(MarkerError):
    """Network or server error on a remote call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message if status_code is None else f"{message} (HTTP {status_code})")
        self.status_code = status_code


class ArchiveWriteFailure(MarkerError):
    """Writing the archive copy failed; the live record was left untouched."""

"""Error taxonomy shared by feeds, submission, geolocation and analysis."""

from __future__ import annotations


class DouarWatchError(Exception):
    """Base class for every recoverable application error."""


class FeedError(DouarWatchError):
    """Network or parse failure while reading a spreadsheet-backed feed."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class GeolocationError(DouarWatchError):
    """Location denied, timed out or unsupported."""

    def __init__(self, message: str, *, reason: str = "unavailable") -> None:
        super().__init__(message)
        self.reason = reason


class SyncWarning(DouarWatchError):
    """Remote submission failed; the report is still saved locally.

    Returned as a value by the submission pipeline, not raised.
    """

    def __init__(self, message: str, *, report_id: str = "") -> None:
        super().__init__(message)
        self.report_id = report_id


class FormValidationError(DouarWatchError):
    """One or more required form fields are missing."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required field(s): {', '.join(missing)}")
        self.missing = list(missing)


class AnalysisError(DouarWatchError):
    """AI summarization was unavailable or returned an unusable payload."""

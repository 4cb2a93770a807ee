"""Custom exceptions for TreasuryLens."""


class TreasuryLensError(Exception):
    """Base exception for all TreasuryLens errors."""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


# Upstream errors
class UpstreamError(TreasuryLensError):
    """Base error for external data sources."""


class UpstreamUnavailableError(UpstreamError):
    """Upstream returned a non-success status or the request failed in transport."""

    def __init__(self, message: str, url: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class UnparseableResponseError(UpstreamError):
    """Upstream responded but the payload was malformed or empty."""


# Treasury errors
class ExtractionError(TreasuryLensError):
    """Base error for treasury extraction."""


class TreasuryDataUnavailableError(ExtractionError):
    """No treasury snapshot could be recovered from any candidate filing."""


# Price errors
class PriceDataUnavailableError(TreasuryLensError):
    """The daily price series could not be loaded."""

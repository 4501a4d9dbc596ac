class InvalidInputError(Exception):
    """Raised when a request body is missing fields or has out-of-range values."""


class NotFoundError(Exception):
    """Raised when a sheet read returns no rows."""


class UpstreamError(Exception):
    """Raised when a Google Sheets API call fails or times out."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        range: str | None = None,
        value_count: int | None = None,
        detail: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.range = range
        self.value_count = value_count
        self.detail = detail

    def details(self) -> dict:
        return {
            "code": self.status,
            "range": self.range,
            "value_count": self.value_count,
            "upstream_error": self.detail,
        }


class ConfigurationError(Exception):
    """Raised at startup when the sheet id, credentials or location table are unusable."""

class LayerCatalogError(Exception):
    """Raised when a layer catalog file is missing or malformed."""


class MonitorApiError(Exception):
    """Raised when a monitor API call fails or answers with an unreadable body."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(message)
        else:
            super().__init__(f"{message} Status code: {status_code}.")


class InvalidAuthenticationError(MonitorApiError):
    """Raised when the monitor API rejects the API key or application key."""

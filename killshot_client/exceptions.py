"""Exceptions raised by the Killshot API client."""


class ApiError(Exception):
    """Base exception for all client errors."""

    pass


class NetworkError(ApiError):
    """Raised when the request never got a response (connection, timeout)."""

    pass


class ServerError(ApiError):
    """Raised when the API answers with an error status or an error envelope."""

    def __init__(self, status_code: int, message: str, details: list | None = None):
        self.status_code = status_code
        self.message = message
        self.details = details or []
        super().__init__(f"Server error {status_code}: {message}")


class DecodingError(ApiError):
    """Raised when a response body is not the expected JSON envelope."""

    pass

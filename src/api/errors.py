from typing import Optional


class ApiError(Exception):
    """
    Any failed call to the backend: a non-2xx response or a transport error.
    status is None when no response was received.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"HTTP {self.status}: {self.message}"


class AuthError(ApiError):
    """401 from the backend, the session token is no longer accepted."""

    DEFAULT_MESSAGE = "Session expired. Please login again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.DEFAULT_MESSAGE, 401)


class NotFoundError(ApiError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, 404)

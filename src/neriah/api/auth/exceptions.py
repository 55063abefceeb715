"""Authentication exceptions."""

from __future__ import annotations


class AuthenticationError(Exception):
    """Raised when a request cannot be authenticated."""

    def __init__(self, message: str = "Authentication required") -> None:
        self.message = message
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer token is malformed, expired or badly signed."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)

"""
Application error taxonomy.

Every error raised by a use case is an ``AppError`` carrying the HTTP status
code it maps to and a client-facing message.
"""


class AppError(Exception):
    """Base application error: a (status code, message) pair."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"Error {self.status_code}: {self.message}"


class BadRequestError(AppError):
    """The request is well-formed but cannot be honored."""

    status_code = 400


class DuplicateError(BadRequestError):
    """A unique value (username, isbn) is already taken."""


class NotFoundError(AppError):
    """The requested or referenced resource does not exist."""

    status_code = 404


class AuthenticationError(AppError):
    """The caller could not be authenticated."""

    status_code = 401


class InfrastructureError(AppError):
    """Store, hashing or signing failure. Details are only logged."""

    status_code = 500

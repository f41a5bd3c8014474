"""
Error taxonomy shared by services and the HTTP layer.

Services raise these; main.py maps them to `{success: false, message}` bodies.
"""

from fastapi import status


class RoommateFinderError(Exception):
    """Base exception for all user-facing application errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationError(RoommateFinderError):
    """Malformed or missing input."""


class ConflictError(RoommateFinderError):
    """Duplicate email on registration."""


class AuthError(RoommateFinderError):
    """Bad credentials, or a missing/invalid/expired token."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(RoommateFinderError):
    """Referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class InternalError(RoommateFinderError):
    """Store or unexpected failure. The message is always generic."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Server error"):
        super().__init__(message)

"""Domain error taxonomy.

The API layer maps these onto HTTP responses; nothing in the core knows
about status codes.
"""

from typing import Optional


class TaleError(Exception):
    """Base class for all domain errors."""

    message = "Tale operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class NotFound(TaleError):
    message = "Not found"


class TaleNotFound(NotFound):
    message = "Tale not found"


class UserNotFound(NotFound):
    message = "User not found"


class AccessDenied(TaleError):
    message = "Access denied"


class TaleNotPublic(AccessDenied):
    message = "Cannot like a private tale"


class NotLiked(AccessDenied):
    message = "Tale not liked yet"


class AlreadyLiked(TaleError):
    message = "Tale already liked"


class CredentialError(TaleError):
    """A mandatory credential was missing or did not verify."""

    message = "Authorization denied"


class MissingCredential(CredentialError):
    message = "No token, authorization denied"


class InvalidCredential(CredentialError):
    message = "Token is not valid"


class InvalidLogin(CredentialError):
    message = "Invalid email or password"


class EmailAlreadyRegistered(TaleError):
    message = "User already exists"


class ValidationFailed(TaleError):
    message = "Invalid input"


class UpstreamGenerationFailure(TaleError):
    message = "Failed to generate tale"


class StoreFailure(TaleError):
    message = "Server error"

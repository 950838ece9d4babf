from __future__ import annotations

"""Centralized, structured exception hierarchy for referlink.

Each exception carries a machine-readable `code` for programmatic error
handling and a human-readable `message` that is returned to API clients as the
``error`` field. The hierarchy maps onto four failure classes:

- input validation (400)
- business rules: duplicate identity, referral rules, credentials (400 / 401)
- authentication tokens (401)
- infrastructure: counter store, database, mail (500)
"""

from typing import Final

__all__: Final = [
    "ReferlinkError",
    "ValidationError",
    "DuplicateUserError",
    "ReferralError",
    "InvalidReferralCodeError",
    "SelfReferralError",
    "ExpiredReferralCodeError",
    "DuplicateReferralError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "MissingTokenError",
    "InvalidTokenError",
    "ExpiredTokenError",
    "UserNotFoundError",
    "RateLimitExceededError",
    "InfrastructureError",
    "CounterStoreError",
    "DatabaseError",
    "EmailServiceError",
]


class ReferlinkError(Exception):
    """Base exception class for all custom errors in the referlink application.

    Attributes:
        message (str): A human-readable error message, safe to show to clients
                       for every class except `InfrastructureError`.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Validation errors (400 Bad Request)
# ---------------------------------------------------------------------------


class ValidationError(ReferlinkError):
    """Raised when request input is missing or malformed."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class DuplicateUserError(ReferlinkError):
    """Raised when the email or username of a new account is already taken."""

    def __init__(
        self, message: str = "Email or username already in use", code: str = "duplicate_user"
    ):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Referral attribution errors (400 Bad Request)
# ---------------------------------------------------------------------------


class ReferralError(ReferlinkError):
    """Base class for referral attribution failures."""

    def __init__(self, message: str, code: str = "referral_error"):
        super().__init__(message, code)


class InvalidReferralCodeError(ReferralError):
    """No account owns the supplied referral code."""

    def __init__(self, message: str = "Invalid referral code", code: str = "invalid_referral_code"):
        super().__init__(message, code)


class SelfReferralError(ReferralError):
    """The supplied code belongs to the account being registered."""

    def __init__(
        self, message: str = "Cannot use your own referral code", code: str = "self_referral"
    ):
        super().__init__(message, code)


class ExpiredReferralCodeError(ReferralError):
    """The referrer's code expired before the registration time."""

    def __init__(
        self, message: str = "Referral code has expired", code: str = "expired_referral_code"
    ):
        super().__init__(message, code)


class DuplicateReferralError(ReferralError):
    """The referred account already has a referral edge."""

    def __init__(
        self, message: str = "Account has already been referred", code: str = "duplicate_referral"
    ):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Authentication errors (401 Unauthorized)
# ---------------------------------------------------------------------------


class AuthenticationError(ReferlinkError):
    """Raised for general authentication failures."""

    def __init__(self, message: str, code: str = "authentication_error"):
        super().__init__(message, code)


class InvalidCredentialsError(AuthenticationError):
    """Raised when login credentials do not match an account.

    The message is deliberately identical for unknown users and wrong
    passwords so that the response cannot be used for account enumeration.
    """

    def __init__(self, message: str = "Invalid credentials", code: str = "invalid_credentials"):
        super().__init__(message, code)


class MissingTokenError(AuthenticationError):
    """No bearer token was supplied."""

    def __init__(self, message: str = "No token provided", code: str = "token_missing"):
        super().__init__(message, code)


class InvalidTokenError(AuthenticationError):
    """The bearer token is malformed, forged, of the wrong type or orphaned."""

    def __init__(self, message: str = "Invalid token", code: str = "token_invalid"):
        super().__init__(message, code)


class ExpiredTokenError(InvalidTokenError):
    """The bearer token was valid once but its ``exp`` has passed."""

    def __init__(self, message: str = "Invalid token", code: str = "token_expired"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Lookup errors (404 Not Found)
# ---------------------------------------------------------------------------


class UserNotFoundError(ReferlinkError):
    """Raised when an account lookup by email finds nothing."""

    def __init__(self, message: str = "User not found", code: str = "user_not_found"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Rate limiting (429 Too Many Requests)
# ---------------------------------------------------------------------------


class RateLimitExceededError(ReferlinkError):
    """Raised when an identifier exceeded its budget for the current window.

    Attributes:
        retry_after (int | None): Seconds the client should wait, if known.
        limit (int | None): Requests allowed per window, if known.
    """

    def __init__(
        self,
        message: str = "Too many requests",
        code: str = "rate_limit_exceeded",
        retry_after: int | None = None,
        limit: int | None = None,
    ):
        super().__init__(message, code)
        self.retry_after = retry_after
        self.limit = limit


# ---------------------------------------------------------------------------
# Infrastructure errors (500 Internal Server Error)
# ---------------------------------------------------------------------------


class InfrastructureError(ReferlinkError):
    """Base class for failures of external collaborators.

    The message is for logs only; clients always receive a generic reply.
    """

    def __init__(self, message: str, code: str = "infrastructure_error"):
        super().__init__(message, code)


class CounterStoreError(InfrastructureError):
    """The counter/cache store was unreachable, failed or timed out."""

    def __init__(self, message: str, code: str = "counter_store_error"):
        super().__init__(message, code)


class DatabaseError(InfrastructureError):
    """Raised for low-level database interaction errors."""

    def __init__(self, message: str, code: str = "database_error"):
        super().__init__(message, code)


class EmailServiceError(InfrastructureError):
    """Raised when the mail collaborator fails to accept a message."""

    def __init__(self, message: str, code: str = "email_service_error"):
        super().__init__(message, code)

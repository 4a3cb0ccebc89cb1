"""
Error taxonomy for the identity and credential lifecycle.

Services raise these; the HTTP layer maps them to responses through the
exception handler registered in ``club_auth.main``.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for expected, user-facing auth failures."""

    status_code: int = 400
    default_message: str = "Authentication error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def error_code(self) -> str:
        return self.__class__.__name__


# NotFound
class NotFoundError(AuthError):
    status_code = 404
    default_message = "Not found"


class UserNotFoundError(NotFoundError):
    default_message = "User not found"


class InvalidTokenError(NotFoundError):
    """Token value is unknown, already consumed, or issued for another purpose."""

    status_code = 400
    default_message = "Invalid verification token"


# Conflict
class ConflictError(AuthError):
    status_code = 409
    default_message = "Conflict"


class EmailInUseError(ConflictError):
    default_message = "Email already in use"


class UsernameTakenError(ConflictError):
    default_message = "Username already taken"


class TokenIssuanceConflictError(ConflictError):
    default_message = "Another token is being issued for this account, please retry"


# Unauthorized
class UnauthorizedError(AuthError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidCredentialsError(UnauthorizedError):
    default_message = "Invalid credentials"


class InvalidPasswordError(UnauthorizedError):
    default_message = "Invalid password"


# InvalidState
class InvalidStateError(AuthError):
    status_code = 400
    default_message = "Invalid account state"


class EmailNotVerifiedError(InvalidStateError):
    status_code = 403
    default_message = "Please verify your email before logging in"


class AlreadyVerifiedError(InvalidStateError):
    default_message = "Email is already verified"


# Expired
class TokenExpiredError(AuthError):
    status_code = 400
    default_message = "Verification token has expired"


class PasswordResetRequestError(AuthError):
    """
    Raised for any reset request that cannot be honored.

    The message is identical whatever the cause so callers cannot use it
    to probe which addresses have accounts.
    """

    status_code = 400
    default_message = "If an account exists with this email, a password reset link will be sent."

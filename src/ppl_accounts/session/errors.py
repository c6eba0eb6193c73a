"""Error taxonomy for account operations."""

from typing import Optional


class AccountError(Exception):
    """Base class for failures reported by the session manager."""

    kind = "unknown"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.kind)
        self.message = str(self)


class NotFoundError(AccountError):
    """Account not found."""
    kind = "not_found"


class NeedsRegistrationError(AccountError):
    """Account not found. Would you like to create a new account with these credentials?"""
    kind = "needs_registration"


class AuthFailureError(AccountError):
    """The auth service rejected the credentials."""
    kind = "auth_failure"


class UnknownError(AccountError):
    """Unexpected failure."""
    kind = "unknown"


class BusyError(AccountError):
    """Another account operation is already in progress."""
    kind = "busy"


class AuthServiceError(Exception):
    """Error raised by an auth service implementation.

    Carries the service's error code and HTTP status where known so the
    manager can classify it without knowing the service's own types.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


INVALID_CREDENTIALS_CODES = {"invalid_credentials", "invalid_grant"}


def is_invalid_credentials(error: AuthServiceError) -> bool:
    """Check whether the service said the email/secret pair is unknown."""
    if error.code in INVALID_CREDENTIALS_CODES:
        return True
    return "invalid login credentials" in error.message.lower()


def classify_error(error: BaseException, allow_registration: bool = False) -> AccountError:
    """Map any collaborator error onto the closed account error set."""
    if isinstance(error, AccountError):
        return error

    if isinstance(error, AuthServiceError):
        if allow_registration and is_invalid_credentials(error):
            return NeedsRegistrationError()
        return AuthFailureError(error.message)

    return UnknownError(str(error) or error.__class__.__name__)

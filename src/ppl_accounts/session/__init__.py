"""Multi-account session management."""

from .errors import (
    AccountError,
    AuthFailureError,
    AuthServiceError,
    BusyError,
    NeedsRegistrationError,
    NotFoundError,
    UnknownError,
    classify_error,
)
from .manager import SessionManager
from .storage import FileStorage, KeyValueStorage, MemoryStorage, SessionStore
from .types import (
    Account,
    ActiveSession,
    AddMode,
    AuthResult,
    Profile,
    SessionEvent,
    SessionEventType,
    SessionState,
    TokenPair,
    User,
)

__all__ = [
    "Account",
    "AccountError",
    "ActiveSession",
    "AddMode",
    "AuthFailureError",
    "AuthResult",
    "AuthServiceError",
    "BusyError",
    "FileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "NeedsRegistrationError",
    "NotFoundError",
    "Profile",
    "SessionEvent",
    "SessionEventType",
    "SessionManager",
    "SessionState",
    "SessionStore",
    "TokenPair",
    "UnknownError",
    "User",
    "classify_error",
]

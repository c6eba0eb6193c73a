"""ppl-accounts - multi-account sessions for the PPL workout tracker."""

from .session import SessionManager, SessionStore

__version__ = "0.1.0"

__all__ = [
    "SessionManager",
    "SessionStore",
]

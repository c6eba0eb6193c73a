"""Auth service base class."""

from abc import ABC, abstractmethod
from typing import Optional

from ..session.types import AuthResult, Profile


class AuthService(ABC):
    """
    Base class for identity/profile backends.

    Implementations raise ``AuthServiceError`` when the service rejects a
    request. Transport failures may propagate as-is.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the backend identifier (e.g., 'supabase')."""
        pass

    @abstractmethod
    async def get_current_session(self) -> Optional[AuthResult]:
        """Return the session the service currently holds, if any."""
        pass

    @abstractmethod
    async def sign_in(self, email: str, secret: str) -> AuthResult:
        """Authenticate with email and password."""
        pass

    @abstractmethod
    async def sign_up(self, email: str, secret: str) -> AuthResult:
        """Register a new identity with email and password."""
        pass

    @abstractmethod
    async def set_session(self, access_token: str, refresh_token: str) -> AuthResult:
        """
        Re-establish a session from a cached token pair.

        Args:
            access_token: The cached access token
            refresh_token: The cached refresh token

        Returns:
            The user, plus the token pair now in force (which may have been
            rotated by the service)
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session."""
        pass

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """Look up a profile by user id. Returns None when there is none."""
        pass

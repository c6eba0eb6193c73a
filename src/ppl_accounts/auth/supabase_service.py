"""Supabase auth service implementation."""

import json
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Optional

from supabase import AsyncClient, AuthError, acreate_client

from ..logger import get_logger
from ..session.errors import AuthServiceError
from ..session.storage import KeyValueStorage, MemoryStorage
from ..session.types import AuthResult, Profile, TokenPair, User
from .base import AuthService

logger = get_logger(__name__)

AUTH_SESSION_KEY = "ppl-auth-session"


@contextmanager
def _translate_auth_errors():
    """Re-raise Supabase auth errors as AuthServiceError."""
    try:
        yield
    except AuthError as e:
        raise AuthServiceError(
            getattr(e, "message", None) or str(e),
            code=getattr(e, "code", None),
            status=getattr(e, "status", None),
        ) from e


def _to_user(user: Any) -> User:
    created_at = getattr(user, "created_at", None)
    if isinstance(created_at, datetime):
        created_at = created_at.isoformat()
    return User(
        id=str(user.id),
        email=getattr(user, "email", None) or "",
        created_at=created_at,
        metadata=dict(getattr(user, "user_metadata", None) or {}),
    )


def _to_result(user: Any, session: Any) -> AuthResult:
    if user is None and session is not None:
        user = session.user
    if user is None:
        raise AuthServiceError("Auth service returned no user", code="no_user")
    tokens = None
    if session is not None:
        tokens = TokenPair(session.access_token, session.refresh_token)
    return AuthResult(user=_to_user(user), tokens=tokens)


class SupabaseAuthService(AuthService):
    """
    Supabase auth and profiles backend.

    The current token pair is mirrored into ``storage`` so that a later
    process can restore the session, the way the web client persists it.
    """

    def __init__(
        self,
        url: str,
        key: str,
        storage: Optional[KeyValueStorage] = None,
        client: Optional[AsyncClient] = None,
    ):
        self._url = url
        self._key = key
        self._storage = storage or MemoryStorage()
        self._client = client

    async def _get_client(self) -> AsyncClient:
        """Lazy-initialize the Supabase client."""
        if self._client is None:
            self._client = await acreate_client(self._url, self._key)
        return self._client

    @property
    def name(self) -> str:
        return "supabase"

    def _remember(self, result: AuthResult) -> AuthResult:
        if result.tokens is not None:
            self._storage.set(AUTH_SESSION_KEY, json.dumps({
                "access_token": result.tokens.access_token,
                "refresh_token": result.tokens.refresh_token,
            }))
        return result

    def _stored_tokens(self) -> Optional[TokenPair]:
        raw = self._storage.get(AUTH_SESSION_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
            return TokenPair(data["access_token"], data["refresh_token"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable stored session: {e}")
            self._storage.delete(AUTH_SESSION_KEY)
            return None

    async def get_current_session(self) -> Optional[AuthResult]:
        client = await self._get_client()
        with _translate_auth_errors():
            session = await client.auth.get_session()
        if session is not None:
            return _to_result(session.user, session)

        stored = self._stored_tokens()
        if stored is None:
            return None
        try:
            return await self.set_session(stored.access_token, stored.refresh_token)
        except AuthServiceError as e:
            logger.info(f"Stored session could not be restored: {e.message}")
            self._storage.delete(AUTH_SESSION_KEY)
            return None

    async def sign_in(self, email: str, secret: str) -> AuthResult:
        client = await self._get_client()
        with _translate_auth_errors():
            response = await client.auth.sign_in_with_password(
                {"email": email, "password": secret}
            )
        return self._remember(_to_result(response.user, response.session))

    async def sign_up(self, email: str, secret: str) -> AuthResult:
        client = await self._get_client()
        with _translate_auth_errors():
            response = await client.auth.sign_up(
                {"email": email, "password": secret}
            )
        return self._remember(_to_result(response.user, response.session))

    async def set_session(self, access_token: str, refresh_token: str) -> AuthResult:
        client = await self._get_client()
        with _translate_auth_errors():
            response = await client.auth.set_session(access_token, refresh_token)
        return self._remember(_to_result(response.user, response.session))

    async def sign_out(self) -> None:
        client = await self._get_client()
        try:
            with _translate_auth_errors():
                await client.auth.sign_out()
        finally:
            self._storage.delete(AUTH_SESSION_KEY)

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        client = await self._get_client()
        response = await (
            client.table("profiles")
            .select("*")
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )
        # postgrest returns None instead of an empty response for no rows
        if response is None or not response.data:
            return None
        return Profile.from_dict(response.data)

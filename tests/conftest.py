"""Shared fixtures: an in-memory auth service and manager wiring."""

import itertools
from typing import Optional

import pytest

from ppl_accounts.auth.base import AuthService
from ppl_accounts.session import (
    AuthResult,
    AuthServiceError,
    MemoryStorage,
    Profile,
    SessionManager,
    SessionStore,
    TokenPair,
    User,
)


class FakeAuthService(AuthService):
    """Auth service keeping users, sessions and profiles in memory."""

    def __init__(self):
        self.users: dict[str, tuple[str, User]] = {}
        self.profiles: dict[str, Profile] = {}
        self.valid_refresh: dict[str, str] = {}
        self.current: Optional[AuthResult] = None
        self.rotate_tokens = True
        self.fail_profile = False
        self.fail_set_session: Optional[Exception] = None
        self.fail_sign_in: Optional[Exception] = None
        self.confirm_email = False
        self.restore_via_set_session = False
        self.calls: list[str] = []
        self._ids = itertools.count(1)
        self._tokens = itertools.count(1)

    @property
    def name(self) -> str:
        return "fake"

    def create_user(self, email: str, password: str, name: Optional[str] = None) -> User:
        user = User(id=f"user-{next(self._ids)}", email=email)
        self.users[email] = (password, user)
        if name:
            self.profiles[user.id] = Profile(id=f"profile-{user.id}", user_id=user.id, name=name)
        return user

    def issue(self, user: User) -> TokenPair:
        n = next(self._tokens)
        tokens = TokenPair(f"access-{user.id}-{n}", f"refresh-{user.id}-{n}")
        self.valid_refresh[tokens.refresh_token] = user.id
        return tokens

    def _open(self, user: User) -> AuthResult:
        self.current = AuthResult(user=user, tokens=self.issue(user))
        return self.current

    async def get_current_session(self) -> Optional[AuthResult]:
        self.calls.append("get_current_session")
        if self.restore_via_set_session and self.current is not None and self.current.tokens is not None:
            # A fresh client restores its persisted session by refreshing it
            tokens = self.current.tokens
            return await self.set_session(tokens.access_token, tokens.refresh_token)
        return self.current

    async def sign_in(self, email: str, secret: str) -> AuthResult:
        self.calls.append("sign_in")
        if self.fail_sign_in is not None:
            raise self.fail_sign_in
        entry = self.users.get(email)
        if entry is None or entry[0] != secret:
            raise AuthServiceError("Invalid login credentials", code="invalid_credentials", status=400)
        return self._open(entry[1])

    async def sign_up(self, email: str, secret: str) -> AuthResult:
        self.calls.append("sign_up")
        if email in self.users:
            raise AuthServiceError("User already registered", code="user_already_exists", status=422)
        user = self.create_user(email, secret)
        if self.confirm_email:
            return AuthResult(user=user, tokens=None)
        return self._open(user)

    async def set_session(self, access_token: str, refresh_token: str) -> AuthResult:
        self.calls.append("set_session")
        if self.fail_set_session is not None:
            raise self.fail_set_session
        user_id = self.valid_refresh.get(refresh_token)
        if user_id is None:
            raise AuthServiceError("Invalid Refresh Token: Refresh Token Not Found", code="refresh_token_not_found", status=400)
        user = next(u for _, u in self.users.values() if u.id == user_id)
        if not self.rotate_tokens:
            self.current = AuthResult(user=user, tokens=TokenPair(access_token, refresh_token))
            return self.current
        del self.valid_refresh[refresh_token]
        return self._open(user)

    async def sign_out(self) -> None:
        self.calls.append("sign_out")
        self.current = None

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        self.calls.append("get_profile")
        if self.fail_profile:
            raise ConnectionError("profiles unavailable")
        return self.profiles.get(user_id)


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    """Keep every test away from the real ~/.ppl-accounts and .env files."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "PPL_ACCOUNTS_DIR", "PPL_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def auth():
    return FakeAuthService()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def manager(auth, storage):
    return SessionManager(auth=auth, store=SessionStore(storage))

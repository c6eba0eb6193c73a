"""Tests for the Supabase auth service adapter."""

import json
from datetime import datetime
from types import SimpleNamespace
from typing import Optional

import pytest
from supabase import AuthError

from ppl_accounts.auth.supabase_service import AUTH_SESSION_KEY, SupabaseAuthService
from ppl_accounts.session import AuthServiceError, MemoryStorage, TokenPair


class FakeSupabaseAuthError(AuthError):
    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        Exception.__init__(self, message)
        self.message = message
        self.code = code
        self.status = status


def gotrue_user(user_id: str = "u1", email: str = "a@x.com"):
    return SimpleNamespace(
        id=user_id,
        email=email,
        created_at=datetime(2024, 1, 1),
        user_metadata={"plan": "ppl"},
    )


def gotrue_session(user, n: int = 1):
    return SimpleNamespace(access_token=f"access-{n}", refresh_token=f"refresh-{n}", user=user)


class FakeAuthClient:
    def __init__(self):
        self.session = None
        self.error: Optional[Exception] = None
        self.calls: list[tuple] = []

    def _respond(self, user, session):
        if self.error is not None:
            raise self.error
        self.session = session
        return SimpleNamespace(user=user, session=session)

    async def get_session(self):
        return self.session

    async def sign_in_with_password(self, credentials):
        self.calls.append(("sign_in", credentials))
        user = gotrue_user(email=credentials["email"])
        return self._respond(user, gotrue_session(user))

    async def sign_up(self, credentials):
        self.calls.append(("sign_up", credentials))
        user = gotrue_user(email=credentials["email"])
        return self._respond(user, None)

    async def set_session(self, access_token, refresh_token):
        self.calls.append(("set_session", access_token, refresh_token))
        user = gotrue_user()
        return self._respond(user, gotrue_session(user, n=2))

    async def sign_out(self):
        self.calls.append(("sign_out",))
        self.session = None


class FakeQuery:
    def __init__(self, rows):
        self.rows = rows
        self.filters = {}

    def select(self, columns):
        return self

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def maybe_single(self):
        return self

    async def execute(self):
        matches = [r for r in self.rows if all(r.get(k) == v for k, v in self.filters.items())]
        if not matches:
            return None
        return SimpleNamespace(data=matches[0])


class FakeClient:
    def __init__(self, rows=None):
        self.auth = FakeAuthClient()
        self.rows = rows or []
        self.tables = []

    def table(self, name):
        self.tables.append(name)
        return FakeQuery(self.rows)


@pytest.fixture
def client():
    return FakeClient(rows=[{"id": "p1", "user_id": "u1", "name": "Alex", "age": 30}])


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def service(client, storage):
    return SupabaseAuthService("https://example.supabase.co", "key", storage=storage, client=client)


class TestSupabaseAuthService:
    @pytest.mark.asyncio
    async def test_sign_in(self, service, client, storage):
        result = await service.sign_in("a@x.com", "pw")

        assert result.user.id == "u1"
        assert result.user.created_at == "2024-01-01T00:00:00"
        assert result.user.metadata == {"plan": "ppl"}
        assert result.tokens == TokenPair("access-1", "refresh-1")
        assert client.auth.calls[0] == ("sign_in", {"email": "a@x.com", "password": "pw"})
        assert json.loads(storage.get(AUTH_SESSION_KEY))["refresh_token"] == "refresh-1"

    @pytest.mark.asyncio
    async def test_sign_up_without_session(self, service, storage):
        result = await service.sign_up("new@x.com", "pw")

        assert result.user.email == "new@x.com"
        assert result.tokens is None
        assert storage.get(AUTH_SESSION_KEY) is None

    @pytest.mark.asyncio
    async def test_errors_are_translated(self, service, client):
        client.auth.error = FakeSupabaseAuthError("Invalid login credentials", code="invalid_credentials", status=400)

        with pytest.raises(AuthServiceError) as exc_info:
            await service.sign_in("a@x.com", "bad")

        assert exc_info.value.code == "invalid_credentials"
        assert exc_info.value.status == 400
        assert isinstance(exc_info.value.__cause__, AuthError)

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, service, client):
        client.auth.error = ConnectionError("offline")

        with pytest.raises(ConnectionError):
            await service.set_session("a", "r")

    @pytest.mark.asyncio
    async def test_set_session_returns_rotated_tokens(self, service, client):
        result = await service.set_session("access-1", "refresh-1")

        assert result.tokens == TokenPair("access-2", "refresh-2")
        assert client.auth.calls[-1] == ("set_session", "access-1", "refresh-1")

    @pytest.mark.asyncio
    async def test_current_session_from_client(self, service, client):
        user = gotrue_user()
        client.auth.session = gotrue_session(user, n=5)

        result = await service.get_current_session()

        assert result.user.id == "u1"
        assert result.tokens.refresh_token == "refresh-5"

    @pytest.mark.asyncio
    async def test_current_session_restored_from_storage(self, service, client, storage):
        storage.set(AUTH_SESSION_KEY, json.dumps({"access_token": "a", "refresh_token": "r"}))

        result = await service.get_current_session()

        assert result is not None
        assert client.auth.calls[-1] == ("set_session", "a", "r")

    @pytest.mark.asyncio
    async def test_unrestorable_session_is_discarded(self, service, client, storage):
        storage.set(AUTH_SESSION_KEY, json.dumps({"access_token": "a", "refresh_token": "r"}))
        client.auth.error = FakeSupabaseAuthError("Invalid Refresh Token", code="refresh_token_not_found", status=400)

        assert await service.get_current_session() is None
        assert storage.get(AUTH_SESSION_KEY) is None

    @pytest.mark.asyncio
    async def test_unreadable_stored_session(self, service, storage):
        storage.set(AUTH_SESSION_KEY, "nonsense")

        assert await service.get_current_session() is None
        assert storage.get(AUTH_SESSION_KEY) is None

    @pytest.mark.asyncio
    async def test_no_session(self, service):
        assert await service.get_current_session() is None

    @pytest.mark.asyncio
    async def test_sign_out_clears_storage(self, service, storage):
        await service.sign_in("a@x.com", "pw")
        await service.sign_out()

        assert storage.get(AUTH_SESSION_KEY) is None

    @pytest.mark.asyncio
    async def test_get_profile(self, service, client):
        profile = await service.get_profile("u1")

        assert profile.name == "Alex"
        assert profile.age == 30
        assert client.tables == ["profiles"]

    @pytest.mark.asyncio
    async def test_get_profile_missing(self, service):
        assert await service.get_profile("nobody") is None

    def test_name(self, service):
        assert service.name == "supabase"

"""Session manager implementation."""

from contextlib import asynccontextmanager
from typing import Callable, Optional

from pydantic import ValidationError

from ..auth.base import AuthService
from ..logger import get_logger
from .errors import (
    AccountError,
    AuthFailureError,
    BusyError,
    NotFoundError,
    classify_error,
)
from .storage import SessionStore
from .types import (
    Account,
    ActiveSession,
    AddMode,
    Credentials,
    Profile,
    SessionEvent,
    SessionEventType,
    SessionState,
)

logger = get_logger(__name__)

SWITCH_FAILED_MESSAGE = "Failed to switch account. You may need to re-add this account."


class SessionManager:
    """
    Manages cached accounts and the single active session.

    All transitions between identities go through this class. The cached
    set and the active session are only changed once the auth service
    call behind a transition succeeded.
    """

    def __init__(self, auth: AuthService, store: Optional[SessionStore] = None):
        self.auth = auth
        self.store = store if store is not None else SessionStore()
        self.active: Optional[ActiveSession] = None
        self.state = SessionState.UNINITIALIZED
        self._busy = False
        self._event_handlers: list[Callable[[SessionEvent], None]] = []

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def is_authenticated(self) -> bool:
        return self.active is not None

    @property
    def current_user(self):
        return self.active.user if self.active else None

    @property
    def current_profile(self) -> Optional[Profile]:
        return self.active.profile if self.active else None

    def subscribe(self, handler: Callable[[SessionEvent], None]) -> None:
        """Register an event handler."""
        self._event_handlers.append(handler)

    def _emit(self, event_type: SessionEventType, data=None) -> None:
        event = SessionEvent(type=event_type, data=data)
        for handler in self._event_handlers:
            handler(event)

    @asynccontextmanager
    async def _operation(self, name: str):
        """Run one operation at a time; overlapping calls get BusyError."""
        if self._busy:
            raise BusyError(f"Cannot {name} while another account operation is running")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def _fail(self, operation: str, error: AccountError) -> AccountError:
        logger.warning(f"{operation} failed ({error.kind}): {error.message}")
        self._emit(SessionEventType.ERROR, {"operation": operation, "kind": error.kind, "message": error.message})
        return error

    def _activate(self, session: Optional[ActiveSession]) -> None:
        self.active = session
        if session is None:
            self.state = SessionState.UNAUTHENTICATED
        else:
            self.state = SessionState.AUTHENTICATED

    async def _fetch_profile(self, user_id: str) -> Optional[Profile]:
        """Best-effort profile lookup."""
        try:
            return await self.auth.get_profile(user_id)
        except Exception as e:
            logger.warning(f"Error loading profile for {user_id}: {e}")
            return None

    def _sync_tokens(self, user_id: str, tokens) -> None:
        """Write tokens the service rotated on restore back into the cache."""
        account = self.store.get(user_id)
        if tokens is None or account is None or account.tokens == tokens:
            return
        try:
            self.store.update_tokens(user_id, tokens)
        except AccountError as e:
            logger.warning(f"Could not cache restored tokens for {user_id}: {e.message}")
            return
        logger.debug(f"Cached restored tokens for {user_id}")

    async def initialize(self) -> Optional[ActiveSession]:
        """Load cached accounts and pick up the service's current session."""
        async with self._operation("initialize"):
            self.state = SessionState.INITIALIZING
            self.store.load()

            session = None
            try:
                result = await self.auth.get_current_session()
            except Exception as e:
                logger.warning(f"Error loading current session: {e}")
                result = None

            if result is not None:
                self._sync_tokens(result.user.id, result.tokens)
                profile = await self._fetch_profile(result.user.id)
                session = ActiveSession(user=result.user, profile=profile, tokens=result.tokens)

            self._activate(session)
            logger.debug(f"Initialized with {len(self.store)} cached account(s)")
            self._emit(SessionEventType.INITIALIZED, {
                "active_id": session.id if session else None,
                "accounts": len(self.store),
            })
            return session

    def list_accounts(self) -> list[Account]:
        """List all cached accounts."""
        return self.store.accounts

    def other_accounts(self) -> list[Account]:
        """List cached accounts other than the active one."""
        active_id = self.active.id if self.active else None
        return [a for a in self.store.accounts if a.id != active_id]

    def get_account(self, user_id: str) -> Optional[Account]:
        return self.store.get(user_id)

    async def switch_to_account(self, user_id: str) -> ActiveSession:
        """
        Make a cached account the active session.

        Raises:
            NotFoundError: The account is not cached
            AuthFailureError: The service refused the cached tokens
        """
        async with self._operation("switch account"):
            account = self.store.get(user_id)
            if account is None:
                raise self._fail("switch", NotFoundError(f"Account not found: {user_id}"))

            try:
                result = await self.auth.set_session(account.access_token, account.refresh_token)
            except Exception as e:
                logger.warning(f"Error switching account: {e}")
                raise self._fail("switch", AuthFailureError(SWITCH_FAILED_MESSAGE)) from e

            if result.tokens is not None and result.tokens != account.tokens:
                try:
                    self.store.update_tokens(user_id, result.tokens)
                except AccountError as e:
                    raise self._fail("switch", e)
                logger.debug(f"Rotated tokens for {user_id}")

            tokens = result.tokens or account.tokens
            self._activate(ActiveSession(user=result.user, profile=account.profile, tokens=tokens))

            self._emit(SessionEventType.ACCOUNT_SWITCHED, {"user_id": user_id})
            return self.active

    async def add_account(
        self,
        email: str,
        secret: str,
        mode: AddMode = AddMode.SIGN_IN,
    ) -> Account:
        """
        Authenticate a new identity, cache it, and make it active.

        Args:
            email: Account email
            secret: Account password
            mode: Sign in to an existing account or register a new one

        Raises:
            NeedsRegistrationError: Sign-in said the credentials are unknown
            AuthFailureError: The service rejected the request
            UnknownError: Anything else, including storage failures
        """
        async with self._operation("add account"):
            try:
                credentials = Credentials(email=email, secret=secret)
            except ValidationError as e:
                message = "; ".join(err["msg"] for err in e.errors())
                raise self._fail("add", AuthFailureError(message)) from e

            self._snapshot_active()

            try:
                if mode is AddMode.REGISTER:
                    result = await self.auth.sign_up(credentials.email, credentials.secret)
                else:
                    result = await self.auth.sign_in(credentials.email, credentials.secret)
            except Exception as e:
                error = classify_error(e, allow_registration=mode is AddMode.SIGN_IN)
                raise self._fail("add", error) from e

            if result.tokens is None:
                raise self._fail("add", AuthFailureError(
                    "Check your email to confirm the account before adding it"
                ))

            profile = await self._fetch_profile(result.user.id)
            account = Account(
                user=result.user,
                profile=profile,
                access_token=result.tokens.access_token,
                refresh_token=result.tokens.refresh_token,
            )
            try:
                self.store.upsert(account)
            except AccountError as e:
                raise self._fail("add", e)
            self._activate(ActiveSession(user=result.user, profile=profile, tokens=result.tokens))

            logger.info(f"Added account {account.id}")
            self._emit(SessionEventType.ACCOUNT_ADDED, {"user_id": account.id, "mode": mode.value})
            return account

    def _snapshot_active(self) -> None:
        """Cache the active identity so switching away does not drop it."""
        if self.active is None or self.store.contains(self.active.id):
            return
        snapshot = self.active.to_account()
        if snapshot is None:
            logger.warning(f"Active session {self.active.id} has no tokens to cache")
            return
        self.store.upsert(snapshot)
        logger.debug(f"Cached active account {snapshot.id} before adding another")

    async def remove_account(self, user_id: str) -> bool:
        """
        Forget a cached account.

        Removing the active account also signs out.

        Returns:
            True if the account was cached
        """
        async with self._operation("remove account"):
            removed = self.store.remove(user_id)
            if self.active is not None and self.active.id == user_id:
                await self._end_session()
            self._emit(SessionEventType.ACCOUNT_REMOVED, {"user_id": user_id})
            return removed

    async def sign_out(self) -> None:
        """Sign out of the active session, keeping the cache."""
        async with self._operation("sign out"):
            await self._end_session()

    async def _end_session(self) -> None:
        try:
            await self.auth.sign_out()
        except Exception as e:
            self._fail("sign out", classify_error(e))
        finally:
            self._activate(None)
        self._emit(SessionEventType.SIGNED_OUT)

    async def refresh_profile(self) -> Optional[Profile]:
        """Refetch the active profile and mirror it into the cache."""
        async with self._operation("refresh profile"):
            if self.active is None:
                return None
            profile = await self._fetch_profile(self.active.id)
            if profile is None:
                return self.active.profile

            self.active.profile = profile
            account = self.store.get(self.active.id)
            if account is not None:
                self.store.upsert(Account(
                    user=account.user,
                    profile=profile,
                    access_token=account.access_token,
                    refresh_token=account.refresh_token,
                ))
            return profile

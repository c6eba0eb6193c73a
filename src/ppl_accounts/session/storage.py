"""Persistence of cached accounts."""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..logger import get_logger
from .errors import UnknownError
from .types import Account, TokenPair

logger = get_logger(__name__)

ACCOUNTS_KEY = "ppl-accounts"


class KeyValueStorage(ABC):
    """Durable string storage addressed by key."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value under a key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        pass


class MemoryStorage(KeyValueStorage):
    """Process-local storage, mostly for tests."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileStorage(KeyValueStorage):
    """
    Stores each key as a file on disk.

    Values are stored in ~/.ppl-accounts/storage/<key>.json
    """

    def __init__(self, base_dir: Optional[str] = None):
        if base_dir:
            self.base_dir = Path(base_dir).expanduser()
        else:
            self.base_dir = Path.home() / ".ppl-accounts" / "storage"

        self._ensure_dir()

    def _ensure_dir(self) -> None:
        """Ensure the storage directory exists."""
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._get_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._get_path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        path = self._get_path(key)
        if path.exists():
            path.unlink()


class SessionStore:
    """
    Owns the cached account set.

    Load and save are the only points that touch durable storage. Every
    mutation is written first and applied in memory only once the write
    succeeded.
    """

    def __init__(self, storage: Optional[KeyValueStorage] = None, key: str = ACCOUNTS_KEY):
        self.storage = storage or FileStorage()
        self.key = key
        self._accounts: list[Account] = []

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self):
        return iter(list(self._accounts))

    def load(self) -> list[Account]:
        """Load accounts from storage. Read or parse errors yield an empty set."""
        try:
            raw = self.storage.get(self.key)
            if not raw:
                self._accounts = []
            else:
                data = json.loads(raw)
                self._accounts = self._dedupe([Account.from_dict(item) for item in data])
        except Exception as e:
            logger.warning(f"Error loading stored accounts: {e}")
            self._accounts = []
        return self.accounts

    def save(self) -> None:
        """Write the current set to storage."""
        self._write(self._accounts)

    def get(self, user_id: str) -> Optional[Account]:
        for account in self._accounts:
            if account.id == user_id:
                return account
        return None

    def contains(self, user_id: str) -> bool:
        return self.get(user_id) is not None

    def upsert(self, account: Account) -> None:
        """Insert an account, or replace the one with the same user id in place."""
        updated = list(self._accounts)
        for index, existing in enumerate(updated):
            if existing.id == account.id:
                updated[index] = account
                break
        else:
            updated.append(account)
        self._commit(updated)

    def update_tokens(self, user_id: str, tokens: TokenPair) -> bool:
        """Rotate the token pair of a cached account. Returns False if absent."""
        if not self.contains(user_id):
            return False
        self._commit([
            account.with_tokens(tokens) if account.id == user_id else account
            for account in self._accounts
        ])
        return True

    def remove(self, user_id: str) -> bool:
        """Drop an account and persist. Returns whether it was present."""
        present = self.contains(user_id)
        self._commit([a for a in self._accounts if a.id != user_id])
        return present

    def _commit(self, accounts: list[Account]) -> None:
        self._write(accounts)
        self._accounts = accounts

    def _write(self, accounts: list[Account]) -> None:
        try:
            payload = json.dumps([a.to_dict() for a in accounts])
            self.storage.set(self.key, payload)
        except Exception as e:
            logger.error(f"Error saving accounts: {e}")
            raise UnknownError(f"Could not save accounts: {e}") from e

    @staticmethod
    def _dedupe(accounts: list[Account]) -> list[Account]:
        """Keep the last entry per user id, at the position of the first."""
        by_id: dict[str, Account] = {}
        for account in accounts:
            by_id[account.id] = account
        return list(by_id.values())

"""Account and session types for ppl-accounts."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator


class AddMode(Enum):
    """How a new account should be authenticated."""
    SIGN_IN = "sign_in"
    REGISTER = "register"


class SessionState(Enum):
    """State of the session manager."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class SessionEventType(Enum):
    """Types of session manager events."""
    INITIALIZED = "initialized"
    ACCOUNT_ADDED = "account_added"
    ACCOUNT_SWITCHED = "account_switched"
    ACCOUNT_REMOVED = "account_removed"
    SIGNED_OUT = "signed_out"
    ERROR = "error"


@dataclass
class SessionEvent:
    """An event from the session manager."""
    type: SessionEventType
    data: Any = None

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "data": self.data,
        }


@dataclass
class User:
    """Identity record issued by the auth service."""
    id: str
    email: str = ""
    created_at: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "created_at": self.created_at,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=data["id"],
            email=data.get("email") or "",
            created_at=data.get("created_at"),
            metadata=data.get("metadata") or {},
        )


@dataclass
class Profile:
    """Row from the profiles table."""
    id: str = ""
    user_id: str = ""
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    height_cm: Optional[float] = None
    weight_kg: Optional[float] = None
    age: Optional[int] = None
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "avatar_url": self.avatar_url,
            "height_cm": self.height_cm,
            "weight_kg": self.weight_kg,
            "age": self.age,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Profile":
        return cls(
            id=str(data.get("id") or ""),
            user_id=str(data.get("user_id") or ""),
            name=data.get("name"),
            avatar_url=data.get("avatar_url"),
            height_cm=data.get("height_cm"),
            weight_kg=data.get("weight_kg"),
            age=data.get("age"),
            created_at=data.get("created_at"),
        )


@dataclass
class TokenPair:
    """Access/refresh bearer credentials."""
    access_token: str
    refresh_token: str


@dataclass
class AuthResult:
    """Outcome of a successful auth call.

    ``tokens`` is None when the service authenticated the user without
    opening a session (e.g. sign-up awaiting e-mail confirmation).
    """
    user: User
    tokens: Optional[TokenPair] = None


def _initials(name: str) -> str:
    return "".join(part[0] for part in name.split() if part).upper()


@dataclass
class Account:
    """A cached identity available for quick switching."""
    user: User
    profile: Optional[Profile] = None
    access_token: str = ""
    refresh_token: str = ""

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def tokens(self) -> TokenPair:
        return TokenPair(self.access_token, self.refresh_token)

    @property
    def display_name(self) -> str:
        if self.profile and self.profile.name:
            return self.profile.name
        return self.user.email

    @property
    def initials(self) -> str:
        if self.profile and self.profile.name:
            return _initials(self.profile.name)
        return self.user.email[:2].upper()

    def with_tokens(self, tokens: TokenPair) -> "Account":
        """Return a copy carrying a new token pair."""
        return Account(
            user=self.user,
            profile=self.profile,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )

    def to_dict(self) -> dict:
        return {
            "user": self.user.to_dict(),
            "profile": self.profile.to_dict() if self.profile else None,
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        profile = data.get("profile")
        return cls(
            user=User.from_dict(data["user"]),
            profile=Profile.from_dict(profile) if profile else None,
            access_token=data.get("accessToken", ""),
            refresh_token=data.get("refreshToken", ""),
        )


@dataclass
class ActiveSession:
    """The identity the application currently acts as."""
    user: User
    profile: Optional[Profile] = None
    tokens: Optional[TokenPair] = None

    @property
    def id(self) -> str:
        return self.user.id

    def to_account(self) -> Optional[Account]:
        """Snapshot as a cacheable account, or None without tokens."""
        if self.tokens is None:
            return None
        return Account(
            user=self.user,
            profile=self.profile,
            access_token=self.tokens.access_token,
            refresh_token=self.tokens.refresh_token,
        )


class Credentials(BaseModel):
    """Email/password pair entered when adding an account."""
    email: str
    secret: str

    @field_validator("email")
    @classmethod
    def email_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Email is required")
        return value

    @field_validator("secret")
    @classmethod
    def secret_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value

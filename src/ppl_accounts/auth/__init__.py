"""Auth service backends."""

from .base import AuthService
from .supabase_service import SupabaseAuthService

__all__ = [
    "AuthService",
    "SupabaseAuthService",
]

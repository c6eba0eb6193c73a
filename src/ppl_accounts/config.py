"""Configuration loaded from the environment."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_URL = "https://placeholder.supabase.co"
PLACEHOLDER_KEY = "placeholder-key"


def config_dir() -> Path:
    """Per-user configuration directory (~/.ppl-accounts)."""
    return Path.home() / ".ppl-accounts"


def default_storage_dir() -> str:
    return str(config_dir() / "storage")


def load_env_files() -> None:
    """Load .env files from various locations."""
    # Load from current directory
    load_dotenv(Path.cwd() / ".env")
    # Load from home directory
    load_dotenv(config_dir() / ".env")


@dataclass
class Settings:
    """Runtime settings."""
    supabase_url: str = PLACEHOLDER_URL
    supabase_anon_key: str = PLACEHOLDER_KEY
    storage_dir: str = field(default_factory=default_storage_dir)
    log_level: str = "WARNING"
    is_configured: bool = False

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        env = os.environ if environ is None else environ
        url = env.get("SUPABASE_URL")
        key = env.get("SUPABASE_ANON_KEY")

        return cls(
            supabase_url=url or PLACEHOLDER_URL,
            supabase_anon_key=key or PLACEHOLDER_KEY,
            storage_dir=env.get("PPL_ACCOUNTS_DIR") or default_storage_dir(),
            log_level=env.get("PPL_LOG_LEVEL") or "WARNING",
            is_configured=bool(url and key),
        )

    def warn_if_unconfigured(self) -> bool:
        """Log which Supabase variables are missing. Returns True if any are."""
        if self.is_configured:
            return False
        url_set = self.supabase_url != PLACEHOLDER_URL
        key_set = self.supabase_anon_key != PLACEHOLDER_KEY
        logger.warning("Missing Supabase environment variables")
        logger.warning(f"SUPABASE_URL: {'Set' if url_set else 'Missing'}")
        logger.warning(f"SUPABASE_ANON_KEY: {'Set' if key_set else 'Missing'}")
        logger.warning("Using fallback configuration - sign-in will not work")
        return True

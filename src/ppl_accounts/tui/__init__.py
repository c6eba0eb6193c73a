"""TUI components for ppl-accounts."""

from .app import AccountSwitcherApp
from .theme import Theme

__all__ = [
    "AccountSwitcherApp",
    "Theme",
]

"""Colors for the account switcher."""

from dataclasses import dataclass


@dataclass
class Theme:
    """Account switcher palette."""
    # Surfaces
    background: str = "#1a1b26"
    panel: str = "#24283b"
    border: str = "#414868"

    text: str = "#c0caf5"
    signed_out: str = "#565f89"

    # Current account header and account avatars
    active_account: str = "#7aa2f7"
    avatar: str = "#bb9af7"

    # Row and form actions
    switch_action: str = "#9ece6a"
    remove_action: str = "#f7768e"
    register_action: str = "#e0af68"

    error: str = "#f7768e"


DEFAULT_THEME = Theme()

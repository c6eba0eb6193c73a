"""TUI widgets for the account switcher."""

from typing import Optional

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widgets import Button, Static

from ..session import Account, ActiveSession
from .theme import DEFAULT_THEME


class CurrentAccountWidget(Static):
    """Header showing the active identity."""

    def __init__(self, session: Optional[ActiveSession] = None, **kwargs):
        super().__init__(**kwargs)
        self.session = session

    def show(self, session: Optional[ActiveSession]) -> None:
        self.session = session
        self.refresh()

    def render(self) -> str:
        if self.session is None:
            return f"[{DEFAULT_THEME.signed_out}]Not signed in[/]"

        user = self.session.user
        profile = self.session.profile
        name = profile.name if profile and profile.name else user.email
        color = DEFAULT_THEME.active_account
        return f"[dim]CURRENT ACCOUNT[/]\n[bold {color}]{name}[/]\n{user.email}"


class AccountRow(Horizontal):
    """A cached account with switch and remove buttons."""

    def __init__(self, account: Account, **kwargs):
        super().__init__(**kwargs)
        self.account = account

    def compose(self) -> ComposeResult:
        color = DEFAULT_THEME.avatar
        yield Static(
            f"[bold {color}]{self.account.initials}[/]  {self.account.display_name}"
            f"\n    [dim]{self.account.email}[/]",
            classes="account-label",
        )
        yield Button("Switch", id=f"switch-{self.account.id}", classes="switch-button")
        yield Button("Remove", variant="error", id=f"remove-{self.account.id}", classes="remove-button")


class StatusBar(Static):
    """Status bar widget."""

    status = reactive("Ready")
    accounts = reactive(0)

    def render(self) -> str:
        return f"Accounts: {self.accounts} | Status: {self.status}"

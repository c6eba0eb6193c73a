"""Account switcher TUI."""

import asyncio
from typing import Awaitable, Callable

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, ScrollableContainer
from textual.reactive import reactive
from textual.widgets import Button, Footer, Header, Input, Static

from ..session import AccountError, AddMode, NeedsRegistrationError, SessionManager
from .theme import DEFAULT_THEME
from .widgets import AccountRow, CurrentAccountWidget, StatusBar


class AccountSwitcherApp(App):
    """Switch between, add, and remove cached accounts."""

    CSS = f"""
    Screen {{
        background: {DEFAULT_THEME.background};
    }}

    CurrentAccountWidget {{
        padding: 1;
        background: {DEFAULT_THEME.panel};
        border-bottom: solid {DEFAULT_THEME.border};
    }}

    #accounts {{
        height: 1fr;
        padding: 1;
    }}

    AccountRow {{
        height: auto;
        margin: 0 0 1 0;
    }}

    .account-label {{
        width: 1fr;
    }}

    .switch-button {{
        color: {DEFAULT_THEME.switch_action};
    }}

    .remove-button {{
        color: {DEFAULT_THEME.remove_action};
    }}

    #register-button {{
        color: {DEFAULT_THEME.register_action};
    }}

    .add-form {{
        height: auto;
        padding: 1;
        border-top: solid {DEFAULT_THEME.border};
    }}

    Input {{
        width: 1fr;
        background: {DEFAULT_THEME.panel};
        color: {DEFAULT_THEME.text};
        border: solid {DEFAULT_THEME.border};
    }}

    Input:focus {{
        border: solid {DEFAULT_THEME.active_account};
    }}

    #error {{
        color: {DEFAULT_THEME.error};
        padding: 0 1;
    }}

    .status-bar {{
        background: {DEFAULT_THEME.border};
        color: {DEFAULT_THEME.text};
        padding: 0 1;
    }}
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+o", "sign_out", "Sign Out"),
    ]

    status = reactive("Loading...")
    is_processing = reactive(False)

    def __init__(self, manager: SessionManager):
        super().__init__()
        self.manager = manager

    def compose(self) -> ComposeResult:
        yield Header()
        yield CurrentAccountWidget(id="current")
        yield Static("[dim]SWITCH TO[/]", id="switch-heading")
        yield ScrollableContainer(id="accounts")
        yield Horizontal(
            Input(placeholder="Email", id="email-input"),
            Input(placeholder="Password", password=True, id="password-input"),
            Button("Add", variant="primary", id="add-button"),
            Button("Register", variant="warning", id="register-button"),
            classes="add-form",
        )
        yield Static("", id="error")
        yield StatusBar(classes="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.query_one("#register-button", Button).display = False
        self.query_one("#email-input", Input).focus()
        self._start(self.manager.initialize, "Ready")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press."""
        button_id = event.button.id or ""
        if button_id == "add-button":
            self._add_account(AddMode.SIGN_IN)
        elif button_id == "register-button":
            self._add_account(AddMode.REGISTER)
        elif button_id.startswith("switch-"):
            user_id = button_id[len("switch-"):]
            self._start(lambda: self.manager.switch_to_account(user_id), "Switched account")
        elif button_id.startswith("remove-"):
            user_id = button_id[len("remove-"):]
            self._start(lambda: self.manager.remove_account(user_id), "Removed account")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle input submission."""
        if event.input.id in ("email-input", "password-input"):
            self._add_account(AddMode.SIGN_IN)

    def action_sign_out(self) -> None:
        """Sign out of the active account."""
        self._start(self.manager.sign_out, "Signed out")

    def _add_account(self, mode: AddMode) -> None:
        email = self.query_one("#email-input", Input).value
        password = self.query_one("#password-input", Input).value

        async def add() -> None:
            await self.manager.add_account(email, password, mode)
            self.query_one("#email-input", Input).value = ""
            self.query_one("#password-input", Input).value = ""
            self.query_one("#register-button", Button).display = False

        self._start(add, "Account added")

    def _start(self, operation: Callable[[], Awaitable], done_status: str) -> None:
        """Run a manager operation in the background."""
        if self.is_processing:
            return

        self.is_processing = True
        self.status = "Working..."
        self._update_status_bar()
        asyncio.create_task(self._run_operation(operation, done_status))

    async def _run_operation(self, operation: Callable[[], Awaitable], done_status: str) -> None:
        error_widget = self.query_one("#error", Static)
        try:
            await operation()
            error_widget.update("")
            self.status = done_status

        except NeedsRegistrationError as e:
            self.query_one("#register-button", Button).display = True
            error_widget.update(e.message)
            self.status = "Account not found"

        except AccountError as e:
            error_widget.update(e.message)
            self.status = f"Error: {e.kind}"

        finally:
            self.is_processing = False
            await self._refresh_accounts()
            self._update_status_bar()

    async def _refresh_accounts(self) -> None:
        """Re-render the current account and the switch list."""
        self.query_one("#current", CurrentAccountWidget).show(self.manager.active)

        container = self.query_one("#accounts", ScrollableContainer)
        await container.remove_children()
        others = self.manager.other_accounts()
        self.query_one("#switch-heading", Static).display = bool(others)
        await container.mount_all([AccountRow(account) for account in others])

    def _update_status_bar(self) -> None:
        """Update the status bar."""
        status_bar = self.query_one(".status-bar", StatusBar)
        status_bar.status = self.status
        status_bar.accounts = len(self.manager.list_accounts())

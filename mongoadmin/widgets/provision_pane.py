"""Forms for creating databases and database-scoped users."""

from __future__ import annotations

from textual import on
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import Button, Checkbox, Input, Static

from mongoadmin.connections import SessionError
from mongoadmin.models import ProvisioningRequest
from mongoadmin.provisioning import PreconditionError, parse_roles
from mongoadmin.session import SessionManager

ROLE_HINT = "Roles: read, readWrite, dbAdmin, userAdmin, dbOwner"


class ProvisionPane(Container):
    """Create-database and create-user forms plus the rendered connection string."""

    DEFAULT_CSS = """
    ProvisionPane {
        layout: vertical;
        border: round $primary 40%;
        padding: 1 2;
        height: 1fr;
        background: $surface;
        overflow-y: auto;
    }

    ProvisionPane .panel-title {
        text-style: bold;
        margin-top: 1;
    }

    ProvisionPane .form-actions {
        height: auto;
        margin-top: 1;
        align-horizontal: left;
    }

    ProvisionPane .form-actions > * {
        margin-right: 1;
    }

    #role-hint {
        color: $text-muted;
    }

    #provision-status {
        margin-top: 1;
    }

    #connection-string {
        margin-top: 1;
        padding: 1;
        border: round $success 40%;
        min-height: 3;
    }
    """

    def __init__(
        self,
        session_manager: SessionManager,
        *,
        create_missing_database: bool = True,
    ) -> None:
        super().__init__(id="provision-pane")
        self._session_manager = session_manager
        self._create_missing_database = create_missing_database

    def compose(self) -> ComposeResult:
        yield Static("Create database", classes="panel-title")
        yield Input(placeholder="Database name", id="database-name")
        yield Horizontal(
            Button("Create database", id="create-database", variant="primary"),
            classes="form-actions",
        )
        yield Static("Create user", classes="panel-title")
        yield Input(placeholder="Database name", id="user-database")
        yield Input(placeholder="Username", id="username")
        yield Input(placeholder="Password", password=True, id="password")
        yield Input(placeholder="read,readWrite (default: readWrite)", id="roles")
        yield Static(ROLE_HINT, id="role-hint")
        yield Checkbox(
            "Create database if missing",
            value=self._create_missing_database,
            id="create-missing",
        )
        yield Horizontal(
            Button("Create user", id="create-user", variant="primary"),
            classes="form-actions",
        )
        yield Static("", id="provision-status", markup=False)
        yield Static("Connection strings for new users appear here.", id="connection-string", markup=False)

    def prefill_database(self, name: str) -> None:
        """Point both forms at ``name``."""

        self.query_one("#database-name", Input).value = name
        self.query_one("#user-database", Input).value = name
        self.query_one("#username", Input).focus()

    @on(Button.Pressed, "#create-database")
    def _handle_create_database(self, event: Button.Pressed) -> None:
        event.stop()
        self.create_database()

    @on(Button.Pressed, "#create-user")
    def _handle_create_user(self, event: Button.Pressed) -> None:
        event.stop()
        self.create_user()

    @on(Input.Submitted, "#database-name")
    def _handle_database_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.create_database()

    def create_database(self) -> None:
        name = self.query_one("#database-name", Input).value.strip()
        if not name:
            self._set_status("Database name cannot be empty.", severity="warning")
            return
        try:
            self._session_manager.create_database(name)
        except SessionError as exc:
            self._set_status(f"Error: {exc}", severity="error")
            return
        self._set_status(f"Database '{name}' created.", severity="success")

    def create_user(self) -> None:
        database = self.query_one("#user-database", Input).value.strip()
        username = self.query_one("#username", Input).value.strip()
        password = self.query_one("#password", Input).value
        roles = parse_roles(self.query_one("#roles", Input).value)
        create_missing = self.query_one("#create-missing", Checkbox).value
        try:
            request = ProvisioningRequest(
                database=database,
                username=username,
                password=password,
                roles=roles,
            )
        except ValueError as exc:
            self._set_status(str(exc), severity="warning")
            return
        try:
            connection_string = self._session_manager.create_user(
                request,
                create_missing_database=create_missing,
            )
        except PreconditionError as exc:
            self._set_status(str(exc), severity="warning")
            return
        except SessionError as exc:
            self._set_status(f"Error: {exc}", severity="error")
            return
        granted = ", ".join(self._session_manager.granted_roles(request))
        self._set_status(
            f"User '{username}' created in '{database}' with roles: {granted}.",
            severity="success",
        )
        self.query_one("#password", Input).value = ""
        self.query_one("#connection-string", Static).update(connection_string)

    def _set_status(self, message: str, *, severity: str) -> None:
        prefix = {
            "information": "ℹ",
            "warning": "⚠",
            "error": "✖",
            "success": "✔",
        }.get(severity, "•")
        self.query_one("#provision-status", Static).update(f"{prefix} {message}")


__all__ = ["ProvisionPane"]

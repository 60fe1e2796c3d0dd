"""Sidebar widget showing the connection target and database listing."""

from __future__ import annotations

from typing import Callable

from textual import on
from textual.app import ComposeResult
from textual.containers import Container
from textual.widgets import Button, Label, ListItem, ListView, Static

from mongoadmin.connections import SessionError
from mongoadmin.session import SessionManager, SessionState


class DatabaseSidebar(Container):
    """Displays the resolved target and the server's databases."""

    DEFAULT_CSS = """
    DatabaseSidebar {
        width: 30;
        min-width: 24;
        border-right: solid $surface-darken-1;
        padding: 1;
        height: 1fr;
        background: $surface-darken-2;
    }

    DatabaseSidebar .sidebar-heading {
        text-style: bold;
        margin-bottom: 1;
    }

    DatabaseSidebar .sidebar-section {
        margin-bottom: 2;
    }

    #target-summary {
        color: $text-muted;
        min-height: 3;
    }

    #database-list {
        height: 1fr;
        border: round $primary 30%;
        margin-bottom: 1;
    }

    #refresh-databases {
        width: 1fr;
    }
    """

    def __init__(self, session_manager: SessionManager) -> None:
        super().__init__(id="database-sidebar")
        self._session_manager = session_manager
        self._summary: Static | None = None
        self._database_list: ListView | None = None
        self._rendered: tuple[str, ...] | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def compose(self) -> ComposeResult:
        yield Static("Connection", classes="sidebar-heading")
        self._summary = Static("Not connected.", id="target-summary", classes="sidebar-section")
        yield self._summary
        yield Static("Databases", classes="sidebar-heading")
        self._database_list = ListView(id="database-list")
        yield self._database_list
        yield Button("Refresh", id="refresh-databases", compact=True)

    async def on_mount(self) -> None:
        self._unsubscribe = self._session_manager.subscribe(self._handle_session_update)

    def on_unmount(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _handle_session_update(self, state: SessionState) -> None:
        self._render_summary(state)
        self._render_databases(state.databases)

    def _render_summary(self, state: SessionState) -> None:
        if self._summary is None:
            return
        target = state.target
        self._summary.update(
            "\n".join(
                [
                    f"Scheme: {target.scheme.prefix}",
                    f"Host: {target.host}",
                    f"Port: {target.port or '—'}",
                ]
            )
        )

    def _render_databases(self, databases: tuple[str, ...]) -> None:
        if self._database_list is None or databases == self._rendered:
            return
        self._rendered = databases
        self._database_list.clear()
        self._database_list.extend(_DatabaseListItem(name) for name in databases)

    @on(ListView.Selected, "#database-list")
    def _handle_database_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if isinstance(item, _DatabaseListItem):
            select = getattr(self.app, "select_database", None)
            if select is not None:
                select(item.database_name)
            event.stop()

    @on(Button.Pressed, "#refresh-databases")
    def _handle_refresh_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        try:
            self._session_manager.refresh_databases()
        except (SessionError, RuntimeError) as exc:  # not connected yet
            self.notify(str(exc), severity="error")


class _DatabaseListItem(ListItem):
    """List item storing a database name for selection callbacks."""

    def __init__(self, name: str) -> None:
        super().__init__(Label(name, markup=False))
        self.database_name = name


__all__ = ["DatabaseSidebar"]

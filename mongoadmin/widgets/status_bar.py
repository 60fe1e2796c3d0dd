"""Status bar widget that mirrors session information."""

from __future__ import annotations

from typing import Callable

from textual.widgets import Static

from mongoadmin.session import SessionManager, SessionState


class StatusBar(Static):
    """Compact status strip rendered above Textual's footer."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        padding: 0 1;
        background: $surface-darken-3;
        color: $text;
    }
    """

    def __init__(self, session_manager: SessionManager) -> None:
        super().__init__("Not connected", id="status-bar", markup=False)
        self._session_manager = session_manager
        self._unsubscribe: Callable[[], None] | None = None

    async def on_mount(self) -> None:
        self._unsubscribe = self._session_manager.subscribe(self._handle_session_update)

    def on_unmount(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _handle_session_update(self, state: SessionState) -> None:
        latency = f"{state.latency_ms} ms" if state.latency_ms is not None else "—"
        connected = state.connected_at.astimezone().strftime("%H:%M:%S")
        parts = [
            f"Host: {state.target.address}",
            f"Scheme: {state.target.scheme.prefix}",
            f"Databases: {len(state.databases)}",
            f"Status: {state.status} ({latency})",
            f"Since: {connected}",
        ]
        if state.last_error:
            reason = state.last_error.splitlines()[0][:80]
            parts.append(f"Error: {reason}")
        self.update(" | ".join(parts))


__all__ = ["StatusBar"]

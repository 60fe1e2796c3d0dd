"""Command palette providers for core app features."""

from __future__ import annotations

from textual.command import DiscoveryHit, Hit, Hits, Provider
from textual.types import IgnoreReturnCallbackType

from .connections import SessionError
from .session import SessionManager


class DatabaseSelectProvider(Provider):
    """Expose listed databases to the command palette."""

    async def search(self, query: str) -> Hits:
        manager = self._session_manager
        if manager is None:
            return
        matcher = self.matcher(query)
        for name in manager.databases:
            match = matcher.match(f"Create user in: {name}")
            if match > 0:
                yield Hit(
                    score=match,
                    match_display=matcher.highlight(f"Create user in: {name}"),
                    command=self._build_callback(name),
                    help="Prefill the provisioning forms with this database.",
                )

    async def discover(self) -> Hits:
        manager = self._session_manager
        if manager is None:
            return
        for name in manager.databases:
            yield DiscoveryHit(
                display=f"Create user in: {name}",
                command=self._build_callback(name),
                help="Prefill the provisioning forms with this database.",
            )

    @property
    def _session_manager(self) -> SessionManager | None:
        manager = getattr(self.app, "session_manager", None)
        if isinstance(manager, SessionManager):
            return manager
        return None

    def _build_callback(self, name: str) -> IgnoreReturnCallbackType:
        async def _run() -> None:
            select = getattr(self.app, "select_database", None)
            if select is None:
                return
            select(name)

        return _run


class DatabaseRefreshProvider(Provider):
    """Expose a refresh action for the database listing."""

    _LABEL = "Refresh database list"

    async def search(self, query: str) -> Hits:
        manager = self._session_manager
        if manager is None:
            return
        matcher = self.matcher(query)
        score = matcher.match(self._LABEL)
        if score > 0:
            yield Hit(
                score=score,
                match_display=matcher.highlight(self._LABEL),
                command=self._build_callback(),
                help="Trigger Ctrl+R equivalent refresh.",
            )

    async def discover(self) -> Hits:
        manager = self._session_manager
        if manager is None:
            return
        yield DiscoveryHit(
            display=self._LABEL,
            command=self._build_callback(),
            help="Trigger Ctrl+R equivalent refresh.",
        )

    @property
    def _session_manager(self) -> SessionManager | None:
        manager = getattr(self.app, "session_manager", None)
        if isinstance(manager, SessionManager) and manager.connected:
            return manager
        return None

    def _build_callback(self) -> IgnoreReturnCallbackType:
        async def _run() -> None:
            manager = self._session_manager
            if manager is None:
                return
            try:
                manager.refresh_databases()
            except SessionError as exc:
                self.app.notify(str(exc), severity="error")

        return _run


__all__ = ["DatabaseRefreshProvider", "DatabaseSelectProvider"]

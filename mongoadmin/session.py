"""Session manager owning the single live connection."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from types import TracebackType
from typing import Callable

from .config import AppConfig
from .connections import ConnectionBackend, MongoSession, PymongoConnectionBackend, SessionError
from .models import ConnectionTarget, ProvisioningRequest
from .provisioning import ProvisioningWorkflow
from .target import resolve

LOG = logging.getLogger(__name__)

SessionListener = Callable[["SessionState"], None]


@dataclass(frozen=True, slots=True)
class SessionState:
    """Current session snapshot (target + database listing)."""

    target: ConnectionTarget
    databases: tuple[str, ...]
    connected_at: datetime
    status: str = "Connected"
    latency_ms: int | None = None
    last_connection_string: str | None = None
    last_error: str | None = None


class SessionManager:
    """Owns the session handle and routes menu operations to the workflow."""

    def __init__(
        self,
        *,
        config: AppConfig | None = None,
        backend: ConnectionBackend | None = None,
    ) -> None:
        self._config = config or AppConfig()
        self._backend = backend or PymongoConnectionBackend()
        self._session: MongoSession | None = None
        self._workflow: ProvisioningWorkflow | None = None
        self._state: SessionState | None = None
        self._listeners: set[SessionListener] = set()

    def __enter__(self) -> SessionManager:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def state(self) -> SessionState | None:
        """Current session state."""

        return self._state

    @property
    def connected(self) -> bool:
        return self._session is not None

    @property
    def target(self) -> ConnectionTarget | None:
        if self._workflow is None:
            return None
        return self._workflow.target

    @property
    def databases(self) -> tuple[str, ...]:
        if self._state:
            return self._state.databases
        return ()

    def connect(self, url: str) -> SessionState:
        """Open the session; ConnectError propagates to the caller."""

        if self._session is not None:
            raise RuntimeError("Session already connected; start a new process to switch servers.")
        url = url.strip()
        if not url:
            raise ValueError("Connection string cannot be empty.")
        target = resolve(url)
        started = time.perf_counter()
        session = self._backend.connect(url, timeout=self._config.connect_timeout)
        latency_ms = int((time.perf_counter() - started) * 1000)
        self._session = session
        self._workflow = ProvisioningWorkflow(
            session,
            target,
            sentinel_collection=self._config.sentinel_collection,
            default_roles=self._config.default_roles,
            tolerate_existing_sentinel=self._config.tolerate_existing_sentinel,
        )
        LOG.info("Connected", extra={"host": target.host, "port": target.port, "scheme": target.scheme.name})
        databases: tuple[str, ...] = ()
        last_error: str | None = None
        try:
            databases = self._workflow.list_databases()
        except SessionError as exc:
            LOG.warning("Initial database listing failed", extra={"host": target.host})
            last_error = str(exc)
        self._set_state(
            SessionState(
                target=target,
                databases=databases,
                connected_at=datetime.now(tz=timezone.utc),
                latency_ms=latency_ms,
                last_error=last_error,
            )
        )
        return self._state

    def refresh_databases(self) -> tuple[str, ...]:
        """Reload the database listing from the server."""

        workflow = self._require_workflow()
        try:
            databases = workflow.list_databases()
        except SessionError as exc:
            self._update(status="Degraded", last_error=str(exc))
            raise
        self._update(databases=databases, status="Connected", last_error=None)
        return databases

    def database_exists(self, name: str) -> bool:
        return self._require_workflow().database_exists(name)

    def create_database(self, name: str) -> None:
        workflow = self._require_workflow()
        if not name:
            raise ValueError("Database name cannot be empty.")
        try:
            workflow.create_database(name)
        except SessionError as exc:
            self._update(last_error=str(exc))
            raise
        self.refresh_databases()

    def create_user(self, request: ProvisioningRequest, *, create_missing_database: bool = False) -> str:
        """Create the requested user, optionally creating its database first."""

        workflow = self._require_workflow()
        try:
            if create_missing_database and not workflow.database_exists(request.database):
                workflow.create_database(request.database)
                self._update(databases=workflow.list_databases())
            connection_string = workflow.execute(request)
        except SessionError as exc:
            self._update(last_error=str(exc))
            raise
        self._update(last_connection_string=connection_string, last_error=None)
        return connection_string

    def granted_roles(self, request: ProvisioningRequest) -> tuple[str, ...]:
        """Role names ``create_user`` grants for ``request``."""

        return tuple(doc["role"] for doc in self._require_workflow().role_documents(request))

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to session updates; returns an unsubscribe handle."""

        self._listeners.add(listener)
        if self._state:
            listener(self._state)

        def _unsubscribe() -> None:
            self._listeners.discard(listener)

        return _unsubscribe

    def close(self) -> None:
        """Disconnect; safe to call more than once."""

        session, self._session = self._session, None
        self._workflow = None
        if session is None:
            return
        try:
            session.close()
        finally:
            LOG.info("Disconnected")
            if self._state:
                self._set_state(replace(self._state, status="Disconnected"))

    def _require_workflow(self) -> ProvisioningWorkflow:
        if self._workflow is None:
            raise RuntimeError("Not connected.")
        return self._workflow

    def _update(self, **changes: object) -> None:
        if not self._state:
            return
        self._set_state(replace(self._state, **changes))

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in tuple(self._listeners):
            listener(state)


__all__ = ["SessionListener", "SessionManager", "SessionState"]

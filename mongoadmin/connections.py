"""Connection backends and the session capability used by the workflow."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from pymongo import MongoClient
from pymongo.errors import CollectionInvalid, PyMongoError

LOG = logging.getLogger(__name__)

SYSTEM_DATABASES: tuple[str, ...] = ("admin", "config", "local")
DEMO_DATABASES: Mapping[str, tuple[str, ...]] = {
    "demo": ("accounts", "orders"),
    "analytics": ("events",),
}


class ConnectError(RuntimeError):
    """Raised when the initial connect or ping fails."""


class SessionError(RuntimeError):
    """Raised when a server-side command fails after connecting."""


class CollectionExistsError(SessionError):
    """Raised when a collection being created is already present."""


@runtime_checkable
class MongoSession(Protocol):
    """Live session handle the provisioning workflow talks to."""

    def ping(self) -> None:
        """Round-trip to the server; raises ConnectError on failure."""

    def list_database_names(self) -> tuple[str, ...]:
        """Return every database name known to the server."""

    def create_collection(self, database: str, name: str) -> None:
        """Create ``name`` inside ``database``."""

    def run_command(self, database: str, document: Mapping[str, Any]) -> dict[str, Any]:
        """Run an administrative command against ``database``."""

    def close(self) -> None:
        """Release the underlying client."""


@runtime_checkable
class ConnectionBackend(Protocol):
    """Factory for live sessions."""

    def connect(self, url: str, *, timeout: float) -> MongoSession:
        """Connect, ping and return a session; raises ConnectError."""


class PymongoSession:
    """Session backed by a pymongo ``MongoClient``."""

    def __init__(self, client: MongoClient) -> None:
        self._client = client

    def ping(self) -> None:
        try:
            self._client.admin.command("ping")
        except PyMongoError as exc:
            raise ConnectError(f"Failed to ping server: {exc}") from exc

    def list_database_names(self) -> tuple[str, ...]:
        try:
            return tuple(self._client.list_database_names())
        except PyMongoError as exc:
            raise SessionError(f"Failed to list databases: {exc}") from exc

    def create_collection(self, database: str, name: str) -> None:
        try:
            self._client[database].create_collection(name)
        except CollectionInvalid as exc:
            raise CollectionExistsError(f"Failed to create collection '{name}' in '{database}': {exc}") from exc
        except PyMongoError as exc:
            raise SessionError(f"Failed to create collection '{name}' in '{database}': {exc}") from exc

    def run_command(self, database: str, document: Mapping[str, Any]) -> dict[str, Any]:
        command = next(iter(document), "command")
        try:
            return dict(self._client[database].command(dict(document)))
        except PyMongoError as exc:
            raise SessionError(f"Failed to run '{command}' on '{database}': {exc}") from exc

    def close(self) -> None:
        self._client.close()


class PymongoConnectionBackend:
    """Connection backend that talks to MongoDB via pymongo."""

    def __init__(self, **client_options: Any) -> None:
        self._client_options = client_options

    def connect(self, url: str, *, timeout: float) -> PymongoSession:
        timeout_ms = int(timeout * 1000)
        options = {
            "serverSelectionTimeoutMS": timeout_ms,
            "connectTimeoutMS": timeout_ms,
            **self._client_options,
        }
        try:
            client: MongoClient = MongoClient(url, **options)
        except PyMongoError as exc:
            raise ConnectError(f"Failed to connect: {exc}") from exc
        session = PymongoSession(client)
        try:
            session.ping()
        except ConnectError:
            client.close()
            raise
        return session


class DemoSession:
    """In-memory stand-in for a MongoDB server."""

    def __init__(self, databases: Mapping[str, Iterable[str]] | None = None) -> None:
        self.databases: dict[str, set[str]] = {name: set() for name in SYSTEM_DATABASES}
        for name, collections in (databases or {}).items():
            self.databases.setdefault(name, set()).update(collections)
        self.users: dict[tuple[str, str], dict[str, Any]] = {}
        self.commands: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def ping(self) -> None:
        if self.closed:
            raise ConnectError("Failed to ping server: session closed")

    def list_database_names(self) -> tuple[str, ...]:
        self._ensure_open("list databases")
        # Databases only exist server-side once they hold a collection.
        names = (
            name
            for name, collections in self.databases.items()
            if collections or name in SYSTEM_DATABASES
        )
        return tuple(sorted(names))

    def create_collection(self, database: str, name: str) -> None:
        self._ensure_open(f"create collection '{name}' in '{database}'")
        collections = self.databases.setdefault(database, set())
        if name in collections:
            raise CollectionExistsError(
                f"Failed to create collection '{name}' in '{database}': collection {database}.{name} already exists"
            )
        collections.add(name)

    def run_command(self, database: str, document: Mapping[str, Any]) -> dict[str, Any]:
        command = dict(document)
        name = next(iter(command), "command")
        self._ensure_open(f"run '{name}' on '{database}'")
        self.commands.append((database, command))
        if name == "ping":
            return {"ok": 1.0}
        if name == "createUser":
            key = (database, str(command["createUser"]))
            if key in self.users:
                raise SessionError(f"Failed to run 'createUser' on '{database}': User \"{key[1]}@{database}\" already exists")
            self.users[key] = {"pwd": command.get("pwd"), "roles": list(command.get("roles", []))}
            return {"ok": 1.0}
        raise SessionError(f"Failed to run '{name}' on '{database}': no such command")

    def close(self) -> None:
        self.closed = True

    def _ensure_open(self, operation: str) -> None:
        if self.closed:
            raise SessionError(f"Failed to {operation}: session closed")


class DemoConnectionBackend:
    """Connection backend that hands out in-memory sessions."""

    def __init__(self, databases: Mapping[str, Iterable[str]] | None = None) -> None:
        self._databases = DEMO_DATABASES if databases is None else databases
        self.sessions: list[DemoSession] = []

    def connect(self, url: str, *, timeout: float) -> DemoSession:
        LOG.debug("Opening demo session", extra={"timeout": timeout})
        session = DemoSession(self._databases)
        session.ping()
        self.sessions.append(session)
        return session


__all__ = [
    "CollectionExistsError",
    "ConnectError",
    "ConnectionBackend",
    "DEMO_DATABASES",
    "DemoConnectionBackend",
    "DemoSession",
    "MongoSession",
    "PymongoConnectionBackend",
    "PymongoSession",
    "SessionError",
    "SYSTEM_DATABASES",
]

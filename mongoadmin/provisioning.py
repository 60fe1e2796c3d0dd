"""Database and user provisioning against a live session."""

from __future__ import annotations

import logging
from typing import Iterable

from .connections import CollectionExistsError, MongoSession
from .models import DEFAULT_ROLES, SENTINEL_COLLECTION, ConnectionTarget, ProvisioningRequest, RoleDocument
from .target import render_connection_string

LOG = logging.getLogger(__name__)


class PreconditionError(RuntimeError):
    """Raised when a user is requested for a database that does not exist."""


class ProvisioningWorkflow:
    """Sequences existence checks, database creation and user creation.

    The session is injected and owned by the caller; the workflow keeps no
    state between calls besides the resolved target.
    """

    def __init__(
        self,
        session: MongoSession,
        target: ConnectionTarget,
        *,
        sentinel_collection: str = SENTINEL_COLLECTION,
        default_roles: Iterable[str] = DEFAULT_ROLES,
        tolerate_existing_sentinel: bool = False,
    ) -> None:
        self._session = session
        self._target = target
        self._sentinel_collection = sentinel_collection
        self._default_roles = tuple(role.strip() for role in default_roles if role.strip()) or DEFAULT_ROLES
        self._tolerate_existing_sentinel = tolerate_existing_sentinel

    @property
    def target(self) -> ConnectionTarget:
        return self._target

    def list_databases(self) -> tuple[str, ...]:
        """Database names as reported by the server."""

        return tuple(self._session.list_database_names())

    def database_exists(self, name: str) -> bool:
        return name in self.list_databases()

    def create_database(self, name: str) -> None:
        """Materialize ``name`` by creating the sentinel collection inside it."""

        try:
            self._session.create_collection(name, self._sentinel_collection)
        except CollectionExistsError:
            if not self._tolerate_existing_sentinel:
                raise
            LOG.info(
                "Sentinel collection already present",
                extra={"database": name, "collection": self._sentinel_collection},
            )
            return
        LOG.info("Database created", extra={"database": name})

    def create_user(
        self,
        database: str,
        username: str,
        password: str,
        roles: Iterable[str] = (),
    ) -> str:
        """Create a user scoped to ``database`` and return its connection string."""

        request = ProvisioningRequest(
            database=database,
            username=username,
            password=password,
            roles=tuple(roles),
        )
        return self.execute(request)

    def role_documents(self, request: ProvisioningRequest) -> list[RoleDocument]:
        return request.role_documents(self._default_roles)

    def execute(self, request: ProvisioningRequest) -> str:
        """Run a provisioning request; the database must already exist."""

        if not self.database_exists(request.database):
            raise PreconditionError(
                f"Database '{request.database}' does not exist. Create it before adding users."
            )
        role_documents = self.role_documents(request)
        self._session.run_command(
            request.database,
            {
                "createUser": request.username,
                "pwd": request.password,
                "roles": role_documents,
            },
        )
        LOG.info(
            "User created",
            extra={
                "database": request.database,
                "user": request.username,
                "roles": [doc["role"] for doc in role_documents],
            },
        )
        return render_connection_string(self._target, request.username, request.password, request.database)


def parse_roles(text: str) -> tuple[str, ...]:
    """Split a comma-separated role list, dropping blanks."""

    return tuple(part.strip() for part in text.split(",") if part.strip())


__all__ = ["PreconditionError", "ProvisioningWorkflow", "parse_roles"]

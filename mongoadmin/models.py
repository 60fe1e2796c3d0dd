"""Shared dataclasses used across target/provisioning/session modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_HOST = "localhost"
DEFAULT_PORT = "27017"
DEFAULT_ROLES: tuple[str, ...] = ("readWrite",)
SENTINEL_COLLECTION = "_init"

RoleDocument = dict[str, str]


class ConnectionScheme(Enum):
    """Connection string variants understood by the resolver."""

    STANDARD = "mongodb://"
    SERVICE_DISCOVERY = "mongodb+srv://"

    @property
    def prefix(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ConnectionTarget:
    """Host/port derived once from the raw connection string.

    An empty ``port`` means the rendered string carries no port segment.
    """

    scheme: ConnectionScheme
    host: str
    port: str
    raw_url: str

    @property
    def address(self) -> str:
        if self.port and self.scheme is ConnectionScheme.STANDARD:
            return f"{self.host}:{self.port}"
        return self.host


@dataclass(frozen=True, slots=True)
class ProvisioningRequest:
    """One user-creation attempt against a single database."""

    database: str
    username: str
    password: str
    roles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for field_name in ("database", "username", "password"):
            if not getattr(self, field_name):
                raise ValueError(f"{field_name.capitalize()} is required.")

    def role_documents(self, default_roles: tuple[str, ...] = DEFAULT_ROLES) -> list[RoleDocument]:
        """Pair every role with the target database, dropping blanks and duplicates."""

        names = _clean_roles(self.roles) or _clean_roles(default_roles) or DEFAULT_ROLES
        seen: set[str] = set()
        documents: list[RoleDocument] = []
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            documents.append({"role": name, "db": self.database})
        return documents


def _clean_roles(names: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(name.strip() for name in names if name and name.strip())


__all__ = [
    "ConnectionScheme",
    "ConnectionTarget",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_ROLES",
    "ProvisioningRequest",
    "RoleDocument",
    "SENTINEL_COLLECTION",
]

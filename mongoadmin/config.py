"""App configuration loading helpers."""

from __future__ import annotations

import json
from pathlib import Path

import tomllib

from pydantic import BaseModel, Field, ValidationError

from .models import DEFAULT_ROLES, SENTINEL_COLLECTION

CONFIG_FILE = Path.home() / ".config" / "mongoadmin" / "config.toml"


class ConnectionProfileConfig(BaseModel):
    """Saved connection string stored in config.toml."""

    name: str
    uri: str


class AppConfig(BaseModel):
    """Shape of the application configuration file."""

    theme: str = "dark"
    connect_timeout: float = 10.0
    default_roles: list[str] = Field(default_factory=lambda: list(DEFAULT_ROLES))
    sentinel_collection: str = SENTINEL_COLLECTION
    tolerate_existing_sentinel: bool = False
    create_missing_database: bool = True
    log_level: str = "WARNING"
    profiles: list[ConnectionProfileConfig] = Field(default_factory=list)
    active_profile: str | None = None

    def profile_by_name(self, name: str) -> ConnectionProfileConfig:
        for profile in self.profiles:
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' not found.")

    def with_active_profile(self, name: str) -> AppConfig:
        """Return a copy with the active profile updated."""

        return self.model_copy(update={"active_profile": name})

    def with_profile(self, name: str, uri: str) -> AppConfig:
        """Return a copy with ``name`` added or pointed at ``uri``."""

        profiles = [profile for profile in self.profiles if profile.name != name]
        profiles.append(ConnectionProfileConfig(name=name, uri=uri))
        return self.model_copy(update={"profiles": profiles})


def load_config() -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file()
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError):
        return AppConfig()
    try:
        return AppConfig(**data)
    except ValidationError:
        return AppConfig()


def save_config(config: AppConfig) -> None:
    """Persist configuration to disk."""

    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = [
        f"theme = {_quote(config.theme)}",
        f"connect_timeout = {config.connect_timeout}",
        f"default_roles = [{', '.join(_quote(role) for role in config.default_roles)}]",
        f"sentinel_collection = {_quote(config.sentinel_collection)}",
        f"tolerate_existing_sentinel = {str(config.tolerate_existing_sentinel).lower()}",
        f"create_missing_database = {str(config.create_missing_database).lower()}",
        f"log_level = {_quote(config.log_level)}",
    ]
    if config.active_profile:
        lines.append(f"active_profile = {_quote(config.active_profile)}")
    if config.profiles:
        lines.append("")
        for profile in config.profiles:
            lines.append("[[profiles]]")
            lines.append(f"name = {_quote(profile.name)}")
            lines.append(f"uri = {_quote(profile.uri)}")
            lines.append("")
    CONFIG_FILE.write_text("\n".join(lines) + "\n")


def _quote(value: str) -> str:
    # JSON string escaping is a valid TOML basic string.
    return json.dumps(value)


def _read_config_file() -> dict[str, object]:
    with CONFIG_FILE.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    if not isinstance(raw, dict):
        return data
    for key in ("theme", "sentinel_collection", "log_level", "active_profile"):
        value = raw.get(key)
        if isinstance(value, str):
            data[key] = value
    for key in ("tolerate_existing_sentinel", "create_missing_database"):
        value = raw.get(key)
        if isinstance(value, bool):
            data[key] = value
    timeout = raw.get("connect_timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
        data["connect_timeout"] = float(timeout)
    roles = raw.get("default_roles")
    if isinstance(roles, list):
        parsed_roles = [str(role).strip() for role in roles if str(role).strip()]
        if parsed_roles:
            data["default_roles"] = parsed_roles
    profiles = raw.get("profiles")
    if isinstance(profiles, list):
        parsed_profiles: list[dict[str, str]] = []
        for profile in profiles:
            if not isinstance(profile, dict):
                continue
            name = profile.get("name")
            uri = profile.get("uri")
            if isinstance(name, str) and name and isinstance(uri, str) and uri:
                parsed_profiles.append({"name": name, "uri": uri})
        data["profiles"] = parsed_profiles
    return data


__all__ = [
    "AppConfig",
    "CONFIG_FILE",
    "ConnectionProfileConfig",
    "load_config",
    "save_config",
]

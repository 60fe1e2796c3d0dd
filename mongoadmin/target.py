"""Connection string parsing and rendering helpers."""

from __future__ import annotations

from urllib.parse import quote_plus

from .models import DEFAULT_HOST, DEFAULT_PORT, ConnectionScheme, ConnectionTarget


def resolve(raw_url: str) -> ConnectionTarget:
    """Extract scheme, host and port from a MongoDB connection string.

    Parsing is best effort and never raises: unknown prefixes are treated as
    the standard scheme and missing pieces fall back to ``localhost:27017``.
    Credentials are split off at the first ``@``, so a password must be
    percent-escaped if it contains one.
    """

    scheme, remainder = _split_scheme(raw_url)
    userinfo, at, authority = remainder.partition("@")
    if not at:
        authority = userinfo
    authority = authority.split("/", 1)[0]
    authority = authority.split("?", 1)[0]

    if scheme is ConnectionScheme.SERVICE_DISCOVERY:
        if not at:
            return ConnectionTarget(scheme, DEFAULT_HOST, DEFAULT_PORT, raw_url)
        return ConnectionTarget(scheme, authority or DEFAULT_HOST, "", raw_url)

    segments = authority.split(":")
    if len(segments) == 2:
        host, port = segments
    else:
        host, port = authority, DEFAULT_PORT
    return ConnectionTarget(scheme, host or DEFAULT_HOST, port, raw_url)


def render_connection_string(
    target: ConnectionTarget,
    username: str,
    password: str,
    database: str,
) -> str:
    """Build a credentials-bearing connection string for another client."""

    credentials = f"{quote_plus(username, safe='')}:{quote_plus(password, safe='')}"
    if ConnectionScheme.SERVICE_DISCOVERY.prefix in target.raw_url:
        return f"{ConnectionScheme.SERVICE_DISCOVERY.prefix}{credentials}@{target.host}/{database}"
    if target.port:
        return f"{ConnectionScheme.STANDARD.prefix}{credentials}@{target.host}:{target.port}/{database}"
    return f"{ConnectionScheme.STANDARD.prefix}{credentials}@{target.host}/{database}"


def _split_scheme(raw_url: str) -> tuple[ConnectionScheme, str]:
    for scheme in (ConnectionScheme.SERVICE_DISCOVERY, ConnectionScheme.STANDARD):
        if raw_url.startswith(scheme.prefix):
            return scheme, raw_url[len(scheme.prefix) :]
    return ConnectionScheme.STANDARD, raw_url


__all__ = ["render_connection_string", "resolve"]

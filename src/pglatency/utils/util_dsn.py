# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""PostgreSQL DSN helpers.

Uses urllib.parse rather than regex so that IPv6 hosts, URL-encoded
passwords and query parameters are handled consistently.

Managed databases commonly hand out DSNs carrying ``sslmode=require``; the
harness configures TLS explicitly instead, so the query parameter is removed
before the DSN reaches the driver.
"""

from __future__ import annotations

import ssl
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

DEFAULT_POSTGRES_PORT = 5432

# Query parameters superseded by the explicit SSL configuration.
_SSL_QUERY_PARAMS = frozenset({"sslmode"})

SSL_MODES = frozenset({"disable", "require", "verify-full"})


def strip_ssl_params(dsn: str) -> str:
    """Return ``dsn`` with any ``sslmode`` query parameter removed.

    Example:
        >>> strip_ssl_params("postgresql://u@h:25060/db?sslmode=require&application_name=x")
        'postgresql://u@h:25060/db?application_name=x'
    """
    parsed = urlparse(dsn)
    if not parsed.query:
        return dsn
    kept = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key.lower() not in _SSL_QUERY_PARAMS
    ]
    return urlunparse(parsed._replace(query=urlencode(kept)))


def mask_dsn(dsn: str | None) -> str:
    """Render a DSN for logging with the password replaced by ``***``.

    Example:
        >>> mask_dsn("postgresql://user:secret@db:5432/app")
        'postgresql://user:***@db:5432/app'
    """
    if not dsn:
        return "<not configured>"
    parsed = urlparse(dsn)
    if parsed.password is None:
        return dsn
    netloc = parsed.netloc.rsplit("@", 1)[-1]
    user = parsed.username or ""
    return urlunparse(parsed._replace(netloc=f"{user}:***@{netloc}"))


def parse_host_port(dsn: str | None) -> tuple[str, int] | None:
    """Extract ``(hostname, port)`` from a DSN, or ``None`` if there is no host."""
    if not dsn:
        return None
    parsed = urlparse(dsn)
    if not parsed.hostname:
        return None
    try:
        port = parsed.port or DEFAULT_POSTGRES_PORT
    except ValueError:
        port = DEFAULT_POSTGRES_PORT
    return parsed.hostname, port


def build_ssl_context(ssl_mode: str) -> ssl.SSLContext | bool:
    """Translate an SSL mode into the ``ssl`` argument asyncpg expects.

    Modes:
        disable: plain TCP (``False``)
        require: encrypted, certificate not verified (private CA)
        verify-full: encrypted, certificate and hostname verified
    """
    if ssl_mode == "disable":
        return False
    context = ssl.create_default_context()
    if ssl_mode == "require":
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


__all__: list[str] = [
    "DEFAULT_POSTGRES_PORT",
    "SSL_MODES",
    "build_ssl_context",
    "mask_dsn",
    "parse_host_port",
    "strip_ssl_params",
]

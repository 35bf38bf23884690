# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Utility helpers: correlation IDs, error sanitization, DSN handling."""

from pglatency.utils.correlation import generate_correlation_id
from pglatency.utils.util_dsn import (
    build_ssl_context,
    mask_dsn,
    parse_host_port,
    strip_ssl_params,
)
from pglatency.utils.util_error_sanitization import (
    sanitize_error_message,
    sanitize_error_string,
)

__all__: list[str] = [
    "build_ssl_context",
    "generate_correlation_id",
    "mask_dsn",
    "parse_host_port",
    "sanitize_error_message",
    "sanitize_error_string",
    "strip_ssl_params",
]

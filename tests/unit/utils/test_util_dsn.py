# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for DSN helpers."""

from __future__ import annotations

import ssl

import pytest

from pglatency.utils.util_dsn import (
    build_ssl_context,
    mask_dsn,
    parse_host_port,
    strip_ssl_params,
)


class TestStripSslParams:
    """Tests for strip_ssl_params."""

    def test_removes_sslmode_keeps_others(self) -> None:
        dsn = "postgresql://u:p@h:25060/db?sslmode=require&application_name=bench"

        assert strip_ssl_params(dsn) == (
            "postgresql://u:p@h:25060/db?application_name=bench"
        )

    def test_removes_only_param(self) -> None:
        assert strip_ssl_params("postgresql://u@h/db?sslmode=require") == (
            "postgresql://u@h/db"
        )

    def test_no_query_unchanged(self) -> None:
        assert strip_ssl_params("postgresql://u@h/db") == "postgresql://u@h/db"


class TestMaskDsn:
    """Tests for mask_dsn."""

    def test_masks_password(self) -> None:
        assert mask_dsn("postgresql://user:secret@db:5432/app") == (
            "postgresql://user:***@db:5432/app"
        )

    def test_no_password_unchanged(self) -> None:
        assert mask_dsn("postgresql://user@db/app") == "postgresql://user@db/app"

    @pytest.mark.parametrize("dsn", [None, ""])
    def test_not_configured(self, dsn: str | None) -> None:
        assert mask_dsn(dsn) == "<not configured>"


class TestParseHostPort:
    """Tests for parse_host_port."""

    def test_explicit_port(self) -> None:
        assert parse_host_port("postgresql://u:p@db.internal:25060/x") == (
            "db.internal",
            25060,
        )

    def test_default_port(self) -> None:
        assert parse_host_port("postgresql://u@db/x") == ("db", 5432)

    @pytest.mark.parametrize("dsn", [None, "", "postgresql:///x"])
    def test_no_host(self, dsn: str | None) -> None:
        assert parse_host_port(dsn) is None


class TestBuildSslContext:
    """Tests for build_ssl_context."""

    def test_disable(self) -> None:
        assert build_ssl_context("disable") is False

    def test_require_skips_verification(self) -> None:
        context = build_ssl_context("require")

        assert isinstance(context, ssl.SSLContext)
        assert context.check_hostname is False
        assert context.verify_mode == ssl.CERT_NONE

    def test_verify_full(self) -> None:
        context = build_ssl_context("verify-full")

        assert isinstance(context, ssl.SSLContext)
        assert context.check_hostname is True
        assert context.verify_mode == ssl.CERT_REQUIRED

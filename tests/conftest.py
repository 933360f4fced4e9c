"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator

import pytest

from row_derive.core.config import RegistryConfig
from row_derive.core.registry import CapabilityRegistry


@pytest.fixture
def registry() -> CapabilityRegistry:
    """Fresh registry so plan caches do not leak between tests."""
    return CapabilityRegistry()


@pytest.fixture
def lax_registry() -> CapabilityRegistry:
    """Registry whose pydantic fallback validates in lax mode."""
    return CapabilityRegistry(RegistryConfig(strict=False))


@pytest.fixture
def sqlite_conn() -> Iterator[sqlite3.Connection]:
    """SQLite in-memory connection returning sqlite3.Row rows."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()

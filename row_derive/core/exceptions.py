"""row-derive exception hierarchy.

Two families: per-row decode errors raised while executing a plan, and
build-time schema errors raised once when a plan is compiled. Per-row
errors never occur at build time and vice versa.
"""

from __future__ import annotations

from typing import Any


class RowDeriveError(Exception):
    """Base exception for all row-derive errors."""


# --- Per-row decoding ---


class RowDecodeError(RowDeriveError):
    """Base for errors raised while decoding a single row.

    ``field_name`` is filled in by the executor with the target field whose
    step failed, when known.
    """

    field_name: str | None = None


class ColumnNotFoundError(RowDecodeError):
    """Raised when a column name or index is absent from the row."""

    def __init__(self, column: str | int) -> None:
        self.column = column
        if isinstance(column, int):
            super().__init__(f"Column index {column} not found in row")
        else:
            super().__init__(f"Column not found: '{column}'")


class TypeMismatchError(RowDecodeError):
    """Raised when a raw column value cannot be decoded into the requested type."""

    def __init__(self, column: str | int | None, expected: str, detail: str) -> None:
        self.column = column
        self.expected = expected
        self.detail = detail
        where = f" for column {column!r}" if column is not None else ""
        super().__init__(f"Cannot decode {expected}{where}: {detail}")


# Name used by the row capability contract for the same failure kind.
DecodeFailure = TypeMismatchError


class ConversionError(RowDecodeError):
    """Raised when a fallible conversion from an intermediate type fails."""

    def __init__(self, source: str, target: str, detail: str) -> None:
        self.source = source
        self.target = target
        self.detail = detail
        super().__init__(f"Cannot convert {source} to {target}: {detail}")


# --- Build time ---


class UnsupportedSchemaError(RowDeriveError):
    """Raised when a target schema cannot be compiled into a decode plan."""


class AttributeConfigError(UnsupportedSchemaError):
    """Raised for invalid or contradictory field/container attributes."""

    def __init__(self, owner: str, detail: str) -> None:
        self.owner = owner
        self.detail = detail
        super().__init__(f"Invalid row attributes on {owner}: {detail}")


class CapabilityError(UnsupportedSchemaError):
    """Raised when a type lacks a capability a decode step requires."""

    def __init__(self, capability: Any, type_name: str, field_name: str | None = None) -> None:
        self.capability = capability
        self.type_name = type_name
        self.field_name = field_name
        where = f" (field '{field_name}')" if field_name else ""
        label = getattr(capability, "value", capability)
        super().__init__(f"Type {type_name} does not support {label}{where}")

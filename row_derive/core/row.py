"""Row protocol and adapters.

Decode plans only ever read a row through ``get_by_name`` and
``get_by_index``. Both report an absent column as ColumnNotFoundError so
the default-on-missing fallback can tell absence apart from bad data.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from row_derive.core.exceptions import ColumnNotFoundError


@runtime_checkable
class Row(Protocol):
    """Read-only access to one result row.

    Adapters shipped here also expose ``columns``; decoding never needs it.
    """

    def get_by_name(self, name: str) -> Any:
        """Return the raw value of column ``name``."""
        ...

    def get_by_index(self, index: int) -> Any:
        """Return the raw value at zero-based position ``index``."""
        ...


class MappingRow:
    """Row backed by a mapping; positional order follows key order."""

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data
        self._columns = list(data.keys())

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def get_by_name(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise ColumnNotFoundError(name) from None

    def get_by_index(self, index: int) -> Any:
        if not 0 <= index < len(self._columns):
            raise ColumnNotFoundError(index)
        return self._data[self._columns[index]]

    def __repr__(self) -> str:
        return f"MappingRow({dict(self._data)!r})"


class SequenceRow:
    """Row backed by a tuple or list.

    Args:
        values: Column values in positional order.
        columns: Optional column names, either plain strings or DB-API
            ``cursor.description`` entries (name first).
    """

    def __init__(self, values: Sequence[Any], columns: Sequence[Any] | None = None) -> None:
        self._values = tuple(values)
        names = [c if isinstance(c, str) else c[0] for c in (columns or ())]
        if names and len(names) != len(self._values):
            raise ValueError(
                f"Row has {len(self._values)} values but {len(names)} column names"
            )
        self._columns = names
        self._positions: dict[str, int] = {}
        for i, name in enumerate(names):
            self._positions.setdefault(name, i)

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def get_by_name(self, name: str) -> Any:
        try:
            return self._values[self._positions[name]]
        except KeyError:
            raise ColumnNotFoundError(name) from None

    def get_by_index(self, index: int) -> Any:
        if not 0 <= index < len(self._values):
            raise ColumnNotFoundError(index)
        return self._values[index]

    def __repr__(self) -> str:
        return f"SequenceRow({self._values!r}, columns={self._columns!r})"


class SqliteRow:
    """Row backed by a stdlib ``sqlite3.Row``."""

    def __init__(self, row: sqlite3.Row) -> None:
        self._row = row

    @property
    def columns(self) -> list[str]:
        return list(self._row.keys())

    def get_by_name(self, name: str) -> Any:
        try:
            return self._row[name]
        except IndexError:
            raise ColumnNotFoundError(name) from None

    def get_by_index(self, index: int) -> Any:
        if not 0 <= index < len(self._row):
            raise ColumnNotFoundError(index)
        return self._row[index]


def as_row(obj: Any) -> Row:
    """Adapt ``obj`` to the Row protocol.

    Accepts Row implementations, ``sqlite3.Row``, mappings and
    non-string sequences.
    """
    if isinstance(obj, Row):
        return obj
    if isinstance(obj, sqlite3.Row):
        return SqliteRow(obj)
    if isinstance(obj, Mapping):
        return MappingRow(obj)
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes, bytearray)):
        return SequenceRow(obj)
    raise TypeError(f"Unsupported row type: {type(obj).__name__}")

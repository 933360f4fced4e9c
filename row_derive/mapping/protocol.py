"""Mapper protocol.

All mappers implement this interface: ``map_one`` for a single row and
``map_many`` for a result set. ``FromRow`` is the implementation shipped here.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol, TypeVar, runtime_checkable

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Mapper(Protocol[T_co]):
    """Base mapper protocol."""

    def map_one(self, row: Any) -> T_co:
        """Map a single row to a target object."""
        ...

    def map_many(self, rows: Iterable[Any]) -> list[T_co]:
        """Map multiple rows to a list of target objects."""
        ...

"""Decode plan data classes.

Frozen dataclasses representing compiled, validated decode plans. Callables
resolved from the capability registry at build time ride along on each step
so the executor never consults the registry per row.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from row_derive.core.enums import AddressingMode, Capability


@dataclass(frozen=True)
class Requirement:
    """A capability some type (or type pair) must provide."""

    capability: Capability
    types: tuple[Any, ...]


@dataclass(frozen=True)
class DecodeStep:
    """Base for per-field steps.

    ``source_type`` is what is read from the row: the field type itself, or
    the ``try_from`` intermediate. ``converter`` is set when the two differ.
    """

    field_name: str | None
    ordinal: int
    field_type: Any
    source_type: Any
    default: Callable[[], Any] | None = field(default=None, compare=False)
    converter: Callable[[Any], Any] | None = field(default=None, compare=False)

    @property
    def default_on_missing(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class DirectByName(DecodeStep):
    """Decode one column looked up by name."""

    column: str = ""
    decoder: Callable[[Any], Any] | None = field(default=None, compare=False)


@dataclass(frozen=True)
class DirectByIndex(DecodeStep):
    """Decode one column looked up by position."""

    index: int = 0
    decoder: Callable[[Any], Any] | None = field(default=None, compare=False)


@dataclass(frozen=True)
class DirectThenConvert(DecodeStep):
    """Decode ``source_type`` from one column, then convert it to ``field_type``."""

    key: str | int = ""
    decoder: Callable[[Any], Any] | None = field(default=None, compare=False)


@dataclass(frozen=True)
class Flatten(DecodeStep):
    """Build ``source_type`` from the whole row, converting it if ``try_from`` was given."""

    mapper: Callable[[Any], Any] | None = field(default=None, compare=False)


@dataclass(frozen=True)
class DecodePlan:
    """Compiled, validated decode plan for one target schema."""

    target: Any
    addressing: AddressingMode
    steps: tuple[DecodeStep, ...]
    requirements: frozenset[Requirement] = frozenset()

    @property
    def field_names(self) -> list[str | None]:
        return [step.field_name for step in self.steps]

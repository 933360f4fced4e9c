"""Decode plan executor.

Runs a DecodePlan against one row: steps in declaration order, first
failure aborts, and the target is constructed only after every step has
succeeded.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from row_derive.core.enums import AddressingMode
from row_derive.core.exceptions import (
    ColumnNotFoundError,
    ConversionError,
    RowDecodeError,
    TypeMismatchError,
)
from row_derive.core.registry import describe_type
from row_derive.core.row import Row, as_row
from row_derive.mapping.plan import (
    DecodePlan,
    DecodeStep,
    DirectByIndex,
    DirectByName,
    DirectThenConvert,
    Flatten,
)

logger = logging.getLogger(__name__)

_CONVERSION_FAILURES = (ValueError, TypeError, ArithmeticError)


def _read(row: Row, key: str | int) -> Any:
    if isinstance(key, int):
        return row.get_by_index(key)
    return row.get_by_name(key)


def _decode(step: DecodeStep, decoder: Any, key: str | int, raw: Any) -> Any:
    if decoder is None:
        return raw
    try:
        return decoder(raw)
    except RowDecodeError:
        raise
    except (ValueError, TypeError) as e:
        raise TypeMismatchError(key, describe_type(step.source_type), str(e)) from e


def _convert(step: DecodeStep, value: Any) -> Any:
    if step.converter is None:
        return value
    try:
        return step.converter(value)
    except RowDecodeError:
        raise
    except _CONVERSION_FAILURES as e:
        raise ConversionError(
            describe_type(step.source_type), describe_type(step.field_type), str(e)
        ) from e


def _run(step: DecodeStep, row: Row) -> Any:
    if isinstance(step, Flatten):
        # A nested failure surfaces as the nested error, never as a conversion error.
        value = step.mapper(row)  # type: ignore[misc]
        return _convert(step, value)

    if isinstance(step, DirectByName):
        key: str | int = step.column
    elif isinstance(step, DirectByIndex):
        key = step.index
    elif isinstance(step, DirectThenConvert):
        key = step.key
    else:
        raise TypeError(f"Unknown decode step: {type(step).__name__}")

    raw = _read(row, key)
    value = _decode(step, step.decoder, key, raw)  # type: ignore[attr-defined]
    return _convert(step, value)


def run_step(step: DecodeStep, row: Row) -> Any:
    """Run one step, substituting the default only when a column is absent."""
    try:
        return _run(step, row)
    except ColumnNotFoundError as e:
        if step.default is None:
            if e.field_name is None:
                e.field_name = step.field_name
            raise
        logger.debug(
            "Column %r missing for field %r, using default", e.column, step.field_name
        )
        return step.default()
    except RowDecodeError as e:
        if e.field_name is None:
            e.field_name = step.field_name
        raise


def _construct(plan: DecodePlan, values: list[Any]) -> Any:
    target = plan.target
    try:
        if plan.addressing is AddressingMode.NAME:
            return target(**{s.field_name: v for s, v in zip(plan.steps, values, strict=True)})
        if isinstance(target, type):
            return target(*values)
        return tuple(values)
    except ValidationError as e:
        raise TypeMismatchError(None, describe_type(target), str(e)) from e


def execute(plan: DecodePlan, row: Any) -> Any:
    """Construct ``plan.target`` from ``row``.

    Args:
        plan: A plan produced by the builder.
        row: A Row, or anything ``as_row`` can adapt (mapping, sequence,
            ``sqlite3.Row``).

    Raises:
        ColumnNotFoundError: A required column is absent.
        TypeMismatchError: A column value has the wrong type.
        ConversionError: A ``try_from`` conversion failed.
    """
    row = as_row(row)
    values = [run_step(step, row) for step in plan.steps]
    return _construct(plan, values)

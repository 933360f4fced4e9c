"""Field and container decoding attributes.

Raw attributes come from ``Annotated[T, column(...)]`` markers,
``dataclasses.field(metadata={"row": {...}})``, the ``__row_config__``
class attribute, or builder overrides. They are resolved into frozen
Pydantic models here so invalid combinations fail once, at build time.
"""

from __future__ import annotations

import typing
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from row_derive.core.enums import NamingConvention
from row_derive.core.exceptions import AttributeConfigError
from row_derive.core.naming import convert, unescape_identifier

METADATA_KEY = "row"
CONFIG_ATTR = "__row_config__"


@dataclass(frozen=True)
class ColumnSpec:
    """Raw per-field attributes attached through ``typing.Annotated``."""

    attrs: tuple[tuple[str, Any], ...]


def column(
    *,
    rename: str | None = None,
    flatten: bool | None = None,
    try_from: Any = None,
    default: bool | None = None,
) -> ColumnSpec:
    """Declare decoding attributes for one field.

    Usage:
        name: Annotated[str, column(rename="full_name")]
        score: Annotated[int, column(default=True)]
        owner_id: Annotated[UUID, column(try_from=str)]
    """
    given = {"rename": rename, "flatten": flatten, "try_from": try_from, "default": default}
    return ColumnSpec(tuple((k, v) for k, v in given.items() if v is not None))


class FieldAttributes(BaseModel):
    """Resolved per-field directives."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    rename: str | None = None
    flatten: bool = False
    try_from: Any = None
    default: bool = False

    @field_validator("rename")
    @classmethod
    def _rename_not_empty(cls, value: str | None) -> str | None:
        if value is not None and not value:
            raise ValueError("rename must be a non-empty column name")
        return value

    @field_validator("try_from")
    @classmethod
    def _try_from_is_type(cls, value: Any) -> Any:
        if value is not None and not (
            isinstance(value, type) or typing.get_origin(value) is not None
        ):
            raise ValueError(f"try_from must be a type, got {value!r}")
        return value

    @model_validator(mode="after")
    def _flatten_has_no_column(self) -> FieldAttributes:
        if self.flatten and self.rename is not None:
            raise ValueError(
                "flatten cannot be combined with rename: a flattened field "
                "is decoded from the whole row, not from a single column"
            )
        return self


class ContainerAttributes(BaseModel):
    """Resolved directives applying to every field of a schema."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    rename_all: NamingConvention | None = None

    @field_validator("rename_all", mode="before")
    @classmethod
    def _parse_convention(cls, value: Any) -> Any:
        if value is None or isinstance(value, NamingConvention):
            return value
        if not isinstance(value, str):
            raise ValueError(f"rename_all must be a string, got {type(value).__name__}")
        return NamingConvention.parse(value)


def _summarize(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "attributes"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def resolve_field_attributes(raw: Mapping[str, Any], owner: str) -> FieldAttributes:
    """Validate raw field attributes.

    Raises:
        AttributeConfigError: Unknown keys, wrong value types, or
            contradictory directives such as ``flatten`` with ``rename``.
    """
    try:
        return FieldAttributes.model_validate(dict(raw))
    except ValidationError as e:
        raise AttributeConfigError(owner, _summarize(e)) from e


def resolve_container_attributes(raw: Mapping[str, Any], owner: str) -> ContainerAttributes:
    """Validate raw container attributes."""
    try:
        return ContainerAttributes.model_validate(dict(raw))
    except ValidationError as e:
        raise AttributeConfigError(owner, _summarize(e)) from e


def column_name_for(
    field_name: str,
    attrs: FieldAttributes,
    container: ContainerAttributes,
) -> str:
    """Column name for a name-addressed field.

    An explicit ``rename`` wins over ``rename_all``; without either the
    field identifier is used with its reserved-word escape removed.
    """
    if attrs.rename is not None:
        return attrs.rename
    if container.rename_all is not None:
        return convert(field_name, container.rename_all)
    return unescape_identifier(field_name)

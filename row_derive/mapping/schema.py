"""Schema introspection - turn a target class into an ordered field list.

Supported targets:
    dataclass, Pydantic model, plain class   -> name-addressed, keyword construction
    NamedTuple, ``tuple[int, str]`` alias     -> position-addressed, positional construction
"""

from __future__ import annotations

import dataclasses
import inspect
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel

from row_derive.core.enums import AddressingMode
from row_derive.core.exceptions import UnsupportedSchemaError
from row_derive.core.registry import describe_type, optional_inner
from row_derive.mapping.attributes import CONFIG_ATTR, METADATA_KEY, ColumnSpec


@dataclass(frozen=True)
class FieldSchema:
    """One declared field of a target schema."""

    name: str | None  # None for ``tuple[...]`` schemas
    annotation: Any
    ordinal: int
    raw_attributes: Mapping[str, Any] = field(default_factory=dict)
    declared_default: Callable[[], Any] | None = None


@dataclass(frozen=True)
class StructSchema:
    """Introspected target: fields in declaration order plus container attributes."""

    target: Any
    addressing: AddressingMode
    fields: tuple[FieldSchema, ...]
    raw_container: Mapping[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return describe_type(self.target)


def split_annotated(annotation: Any) -> tuple[Any, dict[str, Any]]:
    """Strip ``Annotated`` and merge every ``column(...)`` marker it carries."""
    attrs: dict[str, Any] = {}
    if typing.get_origin(annotation) is Annotated:
        base, *metadata = typing.get_args(annotation)
        for item in metadata:
            if isinstance(item, ColumnSpec):
                attrs.update(item.attrs)
        return base, attrs
    return annotation, attrs


def _constant(value: Any) -> Callable[[], Any]:
    return lambda: value


def _type_hints(owner: Any, schema_name: str) -> dict[str, Any]:
    try:
        return typing.get_type_hints(owner, include_extras=True)
    except (NameError, TypeError) as e:
        raise UnsupportedSchemaError(
            f"Cannot resolve field annotations of {schema_name}: {e}"
        ) from e


def _dataclass_fields(cls: type) -> list[FieldSchema]:
    hints = _type_hints(cls, cls.__qualname__)
    result = []
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        annotation, attrs = split_annotated(hints.get(f.name, Any))
        raw = dict(f.metadata.get(METADATA_KEY, {}))
        raw.update(attrs)
        declared = None
        if f.default is not dataclasses.MISSING:
            declared = _constant(f.default)
        elif f.default_factory is not dataclasses.MISSING:
            declared = f.default_factory
        result.append(FieldSchema(f.name, annotation, len(result), raw, declared))
    return result


def _pydantic_fields(cls: type[BaseModel]) -> list[FieldSchema]:
    result = []
    # Pydantic keeps unrecognised Annotated metadata on FieldInfo.metadata.
    for name, info in cls.model_fields.items():
        annotation = info.annotation
        attrs: dict[str, Any] = {}
        for item in info.metadata:
            if isinstance(item, ColumnSpec):
                attrs.update(item.attrs)
        declared = None
        if not info.is_required():
            declared = _pydantic_default(info)
        result.append(FieldSchema(name, annotation, len(result), attrs, declared))
    return result


def _pydantic_default(info: Any) -> Callable[[], Any]:
    return lambda: info.get_default(call_default_factory=True)


def _namedtuple_fields(cls: type) -> list[FieldSchema]:
    hints = _type_hints(cls, cls.__qualname__)
    defaults = getattr(cls, "_field_defaults", {})
    result = []
    for name in cls._fields:  # type: ignore[attr-defined]
        annotation, attrs = split_annotated(hints.get(name, Any))
        declared = _constant(defaults[name]) if name in defaults else None
        result.append(FieldSchema(name, annotation, len(result), attrs, declared))
    return result


def _plain_class_fields(cls: type) -> list[FieldSchema]:
    try:
        signature = inspect.signature(cls.__init__)  # type: ignore[misc]
    except (ValueError, TypeError):
        return []
    params = [
        param
        for name, param in signature.parameters.items()
        if name != "self"
        and param.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    if not params:
        return []
    hints = _type_hints(cls.__init__, cls.__qualname__)  # type: ignore[misc]
    result = []
    for param in params:
        name = param.name
        annotation, attrs = split_annotated(hints.get(name, Any))
        declared = None
        if param.default is not inspect.Parameter.empty:
            declared = _constant(param.default)
        result.append(FieldSchema(name, annotation, len(result), attrs, declared))
    return result


def _tuple_fields(alias: Any) -> list[FieldSchema]:
    args = typing.get_args(alias)
    if len(args) == 2 and args[1] is Ellipsis:
        raise UnsupportedSchemaError(
            f"Variable-length tuples are not supported: {describe_type(alias)}"
        )
    result = []
    for i, arg in enumerate(args):
        annotation, attrs = split_annotated(arg)
        result.append(FieldSchema(None, annotation, i, attrs))
    return result


def introspect(target: Any) -> StructSchema:
    """Build the StructSchema for ``target``.

    Raises:
        UnsupportedSchemaError: For enums, unions, non-class targets and
            schemas without fields.
    """
    name = describe_type(target)

    if typing.get_origin(target) is tuple:
        addressing = AddressingMode.POSITION
        fields = _tuple_fields(target)
        container: Mapping[str, Any] = {}
    elif not isinstance(target, type):
        if optional_inner(target) is not None or typing.get_origin(target) is not None:
            raise UnsupportedSchemaError(f"Unions and generic aliases are not supported: {name}")
        raise UnsupportedSchemaError(f"Cannot map rows to non-class target {name}")
    elif issubclass(target, Enum):
        raise UnsupportedSchemaError(f"Enums are not supported: {name}")
    else:
        container = dict(getattr(target, CONFIG_ATTR, None) or {})
        if issubclass(target, tuple) and hasattr(target, "_fields"):
            addressing = AddressingMode.POSITION
            fields = _namedtuple_fields(target)
        elif dataclasses.is_dataclass(target):
            addressing = AddressingMode.NAME
            fields = _dataclass_fields(target)
        elif issubclass(target, BaseModel):
            addressing = AddressingMode.NAME
            fields = _pydantic_fields(target)
        else:
            addressing = AddressingMode.NAME
            fields = _plain_class_fields(target)

    if not fields:
        raise UnsupportedSchemaError(f"Unit-like schema {name} has no fields to decode")

    return StructSchema(target, addressing, tuple(fields), container)

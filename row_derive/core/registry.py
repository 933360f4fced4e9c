"""Capability registry - what each type can do when decoding rows.

The plan builder asks the registry four questions, keyed by type identity:

    can T be decoded from a column value?         decoder_for(T)
    is T compatible with raw column values?       supports_type(T)
    can T be built from a whole row?               nested_mapper_for(T)
    can A be fallibly converted to B?              converter_for(A, B)

Answers are resolved once, when a plan is built, and the resolved callables
are stored on the plan's steps. Nothing here is consulted per row.
"""

from __future__ import annotations

import dataclasses
import inspect
import threading
import types
import typing
import uuid
from collections.abc import Callable
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, PydanticUserError, TypeAdapter

from row_derive.core.config import RegistryConfig
from row_derive.core.enums import Capability
from row_derive.core.exceptions import UnsupportedSchemaError

Decoder = Callable[[Any], Any]
Converter = Callable[[Any], Any]
DefaultFactory = Callable[[], Any]

_NONE_TYPE = type(None)


def describe_type(tp: Any) -> str:
    """Human-readable type name for error messages."""
    if isinstance(tp, type) and not typing.get_args(tp):
        return tp.__qualname__
    return repr(tp).replace("typing.", "")


def optional_inner(tp: Any) -> Any | None:
    """Return ``T`` for ``T | None`` / ``Optional[T]``, else None."""
    if typing.get_origin(tp) in (Union, types.UnionType):
        args = typing.get_args(tp)
        if _NONE_TYPE in args:
            rest = [a for a in args if a is not _NONE_TYPE]
            if len(rest) == 1:
                return rest[0]
            return Union[tuple(rest)]  # noqa: UP007
    return None


def is_schema_class(tp: Any) -> bool:
    """Dataclasses, Pydantic models and NamedTuples can be mapped from a row."""
    if not isinstance(tp, type):
        return False
    if dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel):
        return True
    return issubclass(tp, tuple) and hasattr(tp, "_fields")


# --- Built-in decoders ---


def _decode_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected int, got {type(value).__name__}")
    return value


def _decode_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected float, got {type(value).__name__}")
    return float(value)


def _decode_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return value


def _decode_bytes(value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"expected bytes, got {type(value).__name__}")
    return bytes(value)


def _to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except InvalidOperation:
        raise ValueError(f"invalid decimal literal {value!r}") from None


def _decode_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise TypeError(f"expected Decimal, got {type(value).__name__}")
    return _to_decimal(value)


def _decode_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise TypeError(f"expected datetime, got {type(value).__name__}")


def _decode_date(value: Any) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise TypeError(f"expected date, got {type(value).__name__}")


def _decode_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        return time.fromisoformat(value)
    raise TypeError(f"expected time, got {type(value).__name__}")


def _decode_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        return uuid.UUID(value)
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    raise TypeError(f"expected UUID, got {type(value).__name__}")


def _passthrough(value: Any) -> Any:
    return value


def _int_to_bool(value: int) -> bool:
    if value not in (0, 1):
        raise ValueError(f"{value} is not 0 or 1")
    return bool(value)


def _enum_decoder(enum_cls: type[Enum]) -> Decoder:
    def decode(value: Any) -> Any:
        if isinstance(value, enum_cls):
            return value
        return enum_cls(value)

    return decode


def _nullable(inner: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def decode(value: Any) -> Any:
        return None if value is None else inner(value)

    return decode


class CapabilityRegistry:
    """Type-keyed lookup of decoders, converters, defaults and nested plans.

    Registrations are expected at startup. Each one drops the lock-guarded
    plan cache, so plans compiled later pick up the new callables; plans
    already handed out keep the ones they were built with.

    Args:
        config: Decoder settings. Defaults to ``RegistryConfig()``.
    """

    def __init__(self, config: RegistryConfig | None = None) -> None:
        self.config = config or RegistryConfig()
        self._decoders: dict[Any, Decoder] = {}
        self._converters: dict[tuple[Any, Any], Converter] = {}
        self._defaults: dict[Any, DefaultFactory] = {}
        self._resolved: dict[Any, Decoder | None] = {}
        self._plans: dict[type, Any] = {}
        self._building: set[type] = set()
        self._lock = threading.RLock()
        self._install_builtins()

    def _install_builtins(self) -> None:
        for tp, fn in (
            (int, _decode_int),
            (float, _decode_float),
            (str, _decode_str),
            (bytes, _decode_bytes),
            (bool, self._decode_bool),
            (Decimal, _decode_decimal),
            (datetime, _decode_datetime),
            (date, _decode_date),
            (time, _decode_time),
            (uuid.UUID, _decode_uuid),
            (Any, _passthrough),
            (object, _passthrough),
        ):
            self.register_decoder(tp, fn)

        for (source, target), fn in {
            (str, int): int,
            (str, float): float,
            (int, float): float,
            (int, str): str,
            (int, bool): _int_to_bool,
            (str, uuid.UUID): uuid.UUID,
            (str, Decimal): _to_decimal,
            (int, Decimal): _to_decimal,
            (float, Decimal): _to_decimal,
            (str, datetime): datetime.fromisoformat,
            (str, date): date.fromisoformat,
            (str, time): time.fromisoformat,
            (int, datetime): lambda v: datetime.fromtimestamp(v, tz=timezone.utc),
        }.items():
            self.register_converter(source, target, fn)

        for tp, factory in (
            (int, int),
            (float, float),
            (str, str),
            (bytes, bytes),
            (bool, bool),
            (Decimal, Decimal),
            (uuid.UUID, lambda: uuid.UUID(int=0)),
            (time, time),
            (list, list),
            (dict, dict),
            (set, set),
            (frozenset, frozenset),
            (tuple, tuple),
        ):
            self.register_default(tp, factory)

    def _decode_bool(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if self.config.bool_from_int and isinstance(value, int):
            return _int_to_bool(value)
        raise TypeError(f"expected bool, got {type(value).__name__}")

    # --- Registration ---

    def register_decoder(self, tp: Any, decoder: Decoder) -> None:
        """Register how to decode a raw column value into ``tp``.

        The decoder raises TypeError or ValueError for incompatible values.
        """
        with self._lock:
            self._decoders[tp] = decoder
            self._resolved.clear()
            self._plans.clear()

    def register_converter(self, source: Any, target: Any, converter: Converter) -> None:
        """Register a fallible conversion from ``source`` values to ``target``."""
        with self._lock:
            self._converters[(source, target)] = converter
            self._plans.clear()

    def register_default(self, tp: Any, factory: DefaultFactory) -> None:
        """Register the default value factory used for ``default`` fields of type ``tp``."""
        with self._lock:
            self._defaults[tp] = factory
            self._plans.clear()

    # --- Decode / type compatibility ---

    def decoder_for(self, tp: Any) -> Decoder | None:
        """Resolve the decoder for ``tp``, or None if ``tp`` is not decodable."""
        try:
            return self._resolved[tp]
        except KeyError:
            pass
        except TypeError:
            return self._resolve_decoder(tp)
        decoder = self._resolve_decoder(tp)
        self._resolved[tp] = decoder
        return decoder

    def _resolve_decoder(self, tp: Any) -> Decoder | None:
        if tp in self._decoders:
            return self._decoders[tp]

        inner = optional_inner(tp)
        if inner is not None:
            inner_decoder = self.decoder_for(inner)
            return _nullable(inner_decoder) if inner_decoder is not None else None

        if isinstance(tp, type) and issubclass(tp, Enum):
            return _enum_decoder(tp)

        if not self.config.pydantic_fallback:
            return None
        try:
            adapter = TypeAdapter(tp)
        except (PydanticUserError, TypeError):
            return None
        strict = self.config.strict

        def decode(value: Any) -> Any:
            return adapter.validate_python(value, strict=strict)

        return decode

    def supports_decode(self, tp: Any) -> bool:
        return self.decoder_for(tp) is not None

    def supports_type(self, tp: Any) -> bool:
        # Decoders check compatibility of the raw value before decoding it.
        return self.decoder_for(tp) is not None

    # --- Nested mapping ---

    def nested_mapper_for(self, tp: Any) -> Callable[[Any], Any] | None:
        """Resolve a ``row -> instance`` callable for ``tp``, or None.

        Classes decorated with ``derive_from_row`` are compiled against this
        registry rather than through their own ``from_row``.
        """
        derived = isinstance(tp, type) and "__row_plan__" in vars(tp)
        from_row = getattr(tp, "from_row", None) if isinstance(tp, type) else None
        if callable(from_row) and not derived:
            return from_row  # type: ignore[no-any-return]
        if not (derived or is_schema_class(tp)):
            return None

        from row_derive.mapping.executor import execute

        plan = self.plan_for(tp)

        def map_nested(row: Any) -> Any:
            return execute(plan, row)

        return map_nested

    def supports_nested(self, tp: Any) -> bool:
        return self.nested_mapper_for(tp) is not None

    def plan_for(self, tp: type) -> Any:
        """Compile (once) and return the DecodePlan for ``tp``.

        Raises:
            UnsupportedSchemaError: If ``tp`` flattens itself, directly or
                through another flattened type.
        """
        from row_derive.mapping.builder import PlanBuilder

        with self._lock:
            if tp in self._plans:
                return self._plans[tp]
            if tp in self._building:
                raise UnsupportedSchemaError(
                    f"Recursive flatten: {describe_type(tp)} is flattened into itself"
                )
            self._building.add(tp)
            try:
                plan = PlanBuilder(tp, registry=self).build()
            finally:
                self._building.discard(tp)
            self._plans[tp] = plan
            return plan

    # --- Fallible conversion ---

    def converter_for(self, source: Any, target: Any) -> Converter | None:
        """Resolve a conversion from ``source`` to ``target``, or None."""
        if (source, target) in self._converters:
            return self._converters[(source, target)]
        if source == target or target in (Any, object):
            return _passthrough

        try_from = getattr(target, "try_from", None) if isinstance(target, type) else None
        if callable(try_from):
            return try_from  # type: ignore[no-any-return]
        if isinstance(target, type) and issubclass(target, Enum):
            return _enum_decoder(target)

        inner = optional_inner(target)
        if inner is not None:
            inner_converter = self.converter_for(source, inner)
            return _nullable(inner_converter) if inner_converter is not None else None
        return None

    def supports_conversion(self, source: Any, target: Any) -> bool:
        return self.converter_for(source, target) is not None

    # --- Defaults ---

    def default_for(self, tp: Any) -> DefaultFactory | None:
        """Resolve the default value factory for ``tp``, or None if it has none."""
        if tp in self._defaults:
            return self._defaults[tp]
        if tp in (Any, object) or optional_inner(tp) is not None:
            return lambda: None

        origin = typing.get_origin(tp)
        if origin in self._defaults:
            return self._defaults[origin]

        if not isinstance(tp, type) or issubclass(tp, Enum):
            return None
        try:
            signature = inspect.signature(tp)
        except (TypeError, ValueError):
            return None
        required = [
            p
            for p in signature.parameters.values()
            if p.default is inspect.Parameter.empty
            and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        ]
        return None if required else tp

    # --- Requirement checks ---

    def satisfies(self, capability: Capability, *type_args: Any) -> bool:
        """Check one capability requirement recorded by the plan builder."""
        if capability is Capability.DECODE:
            return self.supports_decode(type_args[0])
        if capability is Capability.TYPE_COMPATIBLE:
            return self.supports_type(type_args[0])
        if capability is Capability.NESTED_MAPPING:
            return self.supports_nested(type_args[0])
        if capability is Capability.CONVERTIBLE:
            return self.supports_conversion(type_args[0], type_args[1])
        raise ValueError(f"Unknown capability: {capability!r}")


default_registry = CapabilityRegistry()

"""Row-to-model mapper and the ``derive_from_row`` decorator.

Supports dataclasses, Pydantic models, NamedTuples, ``tuple[...]`` aliases
and plain classes. The decode plan is compiled when the mapper is created,
so schema errors surface at registration rather than on the first row.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, Generic, TypeVar, overload

from row_derive.core.enums import NamingConvention
from row_derive.core.registry import CapabilityRegistry, default_registry
from row_derive.mapping.attributes import CONFIG_ATTR
from row_derive.mapping.builder import PlanBuilder
from row_derive.mapping.executor import execute
from row_derive.mapping.plan import DecodePlan

T = TypeVar("T")


class FromRow(Generic[T]):
    """Decode rows into ``target`` instances.

    Args:
        target: The class (or ``tuple[...]`` alias) to construct.
        registry: Capability registry; the module default if omitted.
        rename_all: Naming convention overriding the class's own.
        fields: Per-field attribute overrides, keyed by field name.

    Raises:
        UnsupportedSchemaError: If the schema cannot be compiled.
    """

    def __init__(
        self,
        target: type[T],
        registry: CapabilityRegistry | None = None,
        *,
        rename_all: str | NamingConvention | None = None,
        fields: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self._target = target
        self._registry = registry or default_registry
        if rename_all is None and not fields:
            self._plan: DecodePlan = self._registry.plan_for(target)
        else:
            builder = PlanBuilder(target, self._registry)
            if rename_all is not None:
                builder.rename_all(rename_all)
            for name, attrs in (fields or {}).items():
                builder.field(name, **attrs)
            self._plan = builder.build()

    @property
    def plan(self) -> DecodePlan:
        return self._plan

    def from_row(self, row: Any) -> T:
        """Construct one instance from ``row``; no partial object on failure."""
        return execute(self._plan, row)  # type: ignore[no-any-return]

    def map_one(self, row: Any) -> T:
        """Map a single row to a target instance."""
        return self.from_row(row)

    def map_many(self, rows: Iterable[Any]) -> list[T]:
        """Map all rows via map_one; the first failing row aborts."""
        return [self.from_row(row) for row in rows]


@overload
def derive_from_row(cls: type[T]) -> type[T]: ...


@overload
def derive_from_row(
    cls: None = None,
    *,
    rename_all: str | NamingConvention | None = None,
    registry: CapabilityRegistry | None = None,
) -> Callable[[type[T]], type[T]]: ...


def derive_from_row(
    cls: type[T] | None = None,
    *,
    rename_all: str | NamingConvention | None = None,
    registry: CapabilityRegistry | None = None,
) -> Any:
    """Class decorator adding a ``from_row`` classmethod.

    The plan is compiled at decoration time. Decorated classes can be
    nested into other schemas with ``flatten``; there they are compiled
    against the outer schema's registry, not the one given here.

    Usage:
        @derive_from_row(rename_all="camelCase")
        @dataclass
        class User:
            user_id: int
            display_name: Annotated[str, column(rename="name")]
    """
    reg = registry or default_registry

    def wrap(klass: type[T]) -> type[T]:
        if rename_all is not None:
            config = dict(getattr(klass, CONFIG_ATTR, None) or {})
            config["rename_all"] = rename_all
            setattr(klass, CONFIG_ATTR, config)

        klass.__row_plan__ = reg.plan_for(klass)  # type: ignore[attr-defined]

        def from_row(owner: type[T], row: Any) -> T:
            # Subclasses are not covered by the parent's plan.
            plan = owner.__dict__.get("__row_plan__") or reg.plan_for(owner)
            return execute(plan, row)  # type: ignore[no-any-return]

        klass.from_row = classmethod(from_row)  # type: ignore[attr-defined]
        return klass

    if cls is not None:
        return wrap(cls)
    return wrap

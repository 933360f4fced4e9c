"""Decode plan builder.

Compiles a target schema and its attributes into a DecodePlan. Each field
gets exactly one strategy, chosen from its ``flatten`` and ``try_from``
attributes:

    flatten  try_from   step
    -------  --------   ------------------------------------------
    yes      -          Flatten(field type)
    no       -          DirectByName / DirectByIndex(field type)
    yes      T          Flatten(T), then convert T -> field type
    no       T          DirectThenConvert(T), then convert T -> field type

Every capability the steps need is checked against the registry here, so a
plan that builds can only fail per row on bad data.
"""

from __future__ import annotations

import logging
from typing import Any

from row_derive.core.enums import AddressingMode, Capability, NamingConvention
from row_derive.core.exceptions import (
    AttributeConfigError,
    CapabilityError,
    UnsupportedSchemaError,
)
from row_derive.core.registry import CapabilityRegistry, default_registry, describe_type
from row_derive.mapping.attributes import (
    ContainerAttributes,
    FieldAttributes,
    column_name_for,
    resolve_container_attributes,
    resolve_field_attributes,
)
from row_derive.mapping.plan import (
    DecodePlan,
    DecodeStep,
    DirectByIndex,
    DirectByName,
    DirectThenConvert,
    Flatten,
    Requirement,
)
from row_derive.mapping.schema import FieldSchema, StructSchema, introspect

logger = logging.getLogger(__name__)


def build_plan(target: Any, registry: CapabilityRegistry | None = None) -> DecodePlan:
    """Compile ``target`` using only the attributes declared on it."""
    return PlanBuilder(target, registry).build()


class PlanBuilder:
    """Fluent builder for decode plans.

    Attributes declared on the target are the baseline; ``rename_all`` and
    ``field`` add or override them without touching the class.

    Usage:
        plan = (
            PlanBuilder(User)
            .rename_all("camelCase")
            .field("name", rename="full_name")
            .field("score", default=True)
            .build()
        )
    """

    def __init__(self, target: Any, registry: CapabilityRegistry | None = None) -> None:
        self._target = target
        self._registry = registry or default_registry
        self._container_overrides: dict[str, Any] = {}
        self._field_overrides: dict[str, dict[str, Any]] = {}

    def rename_all(self, convention: str | NamingConvention) -> PlanBuilder:
        """Set the naming convention for every field without an explicit rename."""
        self._container_overrides["rename_all"] = convention
        return self

    def field(self, name: str, **attrs: Any) -> PlanBuilder:
        """Override attributes of one field (``rename``, ``flatten``, ``try_from``, ``default``)."""
        self._field_overrides.setdefault(name, {}).update(attrs)
        return self

    def build(self) -> DecodePlan:
        """Compile and validate the schema into a DecodePlan.

        Raises:
            UnsupportedSchemaError: For unsupported targets, invalid
                attributes, or types lacking a required capability.
        """
        schema = introspect(self._target)
        container = resolve_container_attributes(
            {**schema.raw_container, **self._container_overrides}, schema.name
        )

        unknown = set(self._field_overrides) - {f.name for f in schema.fields}
        if unknown:
            raise AttributeConfigError(schema.name, f"unknown field(s) {sorted(unknown)}")

        steps: list[DecodeStep] = []
        requirements: set[Requirement] = set()
        for fs in schema.fields:
            owner = f"{schema.name}.{fs.name}" if fs.name else f"{schema.name}[{fs.ordinal}]"
            raw = {**fs.raw_attributes, **self._field_overrides.get(fs.name or "", {})}
            attrs = resolve_field_attributes(raw, owner)

            field_requirements = self._requirements(fs, attrs)
            for req in field_requirements:
                self._check(req, owner)
            requirements.update(field_requirements)
            steps.append(self._step(schema, container, fs, attrs, owner))

        plan = DecodePlan(
            target=schema.target,
            addressing=schema.addressing,
            steps=tuple(steps),
            requirements=frozenset(requirements),
        )
        logger.debug(
            "Compiled decode plan for %s: %d %s-addressed step(s), %d requirement(s)",
            schema.name,
            len(plan.steps),
            plan.addressing.value,
            len(plan.requirements),
        )
        return plan

    def _requirements(self, fs: FieldSchema, attrs: FieldAttributes) -> list[Requirement]:
        """Minimal capabilities the field's strategy needs."""
        source = attrs.try_from if attrs.try_from is not None else fs.annotation
        if attrs.flatten:
            result = [Requirement(Capability.NESTED_MAPPING, (source,))]
        else:
            result = [
                Requirement(Capability.DECODE, (source,)),
                Requirement(Capability.TYPE_COMPATIBLE, (source,)),
            ]
        if attrs.try_from is not None:
            result.append(Requirement(Capability.CONVERTIBLE, (source, fs.annotation)))
        return result

    def _check(self, req: Requirement, owner: str) -> None:
        if not self._registry.satisfies(req.capability, *req.types):
            raise CapabilityError(
                req.capability,
                " -> ".join(describe_type(t) for t in req.types),
                field_name=owner,
            )

    def _step(
        self,
        schema: StructSchema,
        container: ContainerAttributes,
        fs: FieldSchema,
        attrs: FieldAttributes,
        owner: str,
    ) -> DecodeStep:
        registry = self._registry
        field_type = fs.annotation
        source = attrs.try_from if attrs.try_from is not None else field_type
        common: dict[str, Any] = {
            "field_name": fs.name,
            "ordinal": fs.ordinal,
            "field_type": field_type,
            "source_type": source,
            "default": self._default(fs, owner) if attrs.default else None,
            "converter": (
                registry.converter_for(source, field_type) if attrs.try_from is not None else None
            ),
        }

        if attrs.flatten:
            return Flatten(**common, mapper=registry.nested_mapper_for(source))

        # Position-addressed schemas ignore naming attributes entirely.
        key: str | int
        if schema.addressing is AddressingMode.NAME:
            key = column_name_for(fs.name or "", attrs, container)
        else:
            key = fs.ordinal

        decoder = registry.decoder_for(source)
        if attrs.try_from is not None:
            return DirectThenConvert(**common, key=key, decoder=decoder)
        if isinstance(key, str):
            return DirectByName(**common, column=key, decoder=decoder)
        return DirectByIndex(**common, index=key, decoder=decoder)

    def _default(self, fs: FieldSchema, owner: str) -> Any:
        """Default factory for a ``default`` field: declared default first, then the type's."""
        if fs.declared_default is not None:
            return fs.declared_default
        factory = self._registry.default_for(fs.annotation)
        if factory is None:
            raise UnsupportedSchemaError(
                f"{owner} is marked default but {describe_type(fs.annotation)} "
                "has no default value"
            )
        return factory

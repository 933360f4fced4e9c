"""Unit tests for DecodePlan data classes, schema introspection and PlanBuilder."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, NamedTuple
from uuid import UUID

import pytest
from pydantic import BaseModel

from row_derive.core.enums import AddressingMode, Capability
from row_derive.core.exceptions import (
    AttributeConfigError,
    CapabilityError,
    UnsupportedSchemaError,
)
from row_derive.core.registry import CapabilityRegistry
from row_derive.mapping.attributes import column
from row_derive.mapping.builder import PlanBuilder, build_plan
from row_derive.mapping.plan import (
    DecodePlan,
    DirectByIndex,
    DirectByName,
    DirectThenConvert,
    Flatten,
    Requirement,
)
from row_derive.mapping.schema import introspect

# --- Test models ---


@dataclass
class Account:
    __row_config__ = {"rename_all": "snake_case"}

    id: int
    name: Annotated[str, column(rename="full_name")]


@dataclass
class Address:
    street: str
    city: str


@dataclass
class RawPrice:
    amount: int
    currency: str


@dataclass(frozen=True)
class Price:
    cents: int
    currency: str

    @classmethod
    def try_from(cls, raw: RawPrice) -> Price:
        if raw.amount < 0:
            raise ValueError("negative amount")
        return cls(raw.amount, raw.currency)


@dataclass
class Order:
    id: int
    shipping: Annotated[Address, column(flatten=True)]
    price: Annotated[Price, column(flatten=True, try_from=RawPrice)]
    owner: Annotated[UUID, column(try_from=str)]


class Pair(NamedTuple):
    left: Annotated[int, column(rename="ignored")]
    right: str


class Color(Enum):
    RED = "red"
    BLUE = "blue"


@dataclass
class Empty:
    pass


@dataclass
class FlattenRenamed:
    address: Annotated[Address, column(flatten=True, rename="addr")]


class Opaque:
    def __init__(self, handle: object) -> None:
        self.handle = handle


@dataclass
class HasOpaque:
    thing: Opaque


@dataclass
class FlatInt:
    n: Annotated[int, column(flatten=True)]


@dataclass
class BadConversion:
    place: Annotated[Address, column(try_from=bytes)]


@dataclass
class NoDefault:
    color: Annotated[Color, column(default=True)]


@dataclass
class DeclaredDefault:
    level: Annotated[int, column(default=True)] = 5
    tags: Annotated[list[str], column(default=True)] = field(default_factory=lambda: ["x"])


@dataclass
class Node:
    value: int
    inner: Annotated[Node, column(flatten=True)]


class Profile(BaseModel):
    user_id: int
    nickname: Annotated[str, column(rename="nick")] = "anon"


class PlainUser:
    def __init__(self, id: int, email: str, active: bool = True) -> None:
        self.id = id
        self.email = email
        self.active = active


class TestDecodePlanDataClasses:
    def test_step_frozen(self) -> None:
        step = DirectByName(
            field_name="id", ordinal=0, field_type=int, source_type=int, column="id"
        )
        with pytest.raises(AttributeError):
            step.column = "other"  # type: ignore[misc]

    def test_plan_frozen(self) -> None:
        plan = DecodePlan(target=Account, addressing=AddressingMode.NAME, steps=())
        with pytest.raises(AttributeError):
            plan.steps = ()  # type: ignore[misc]

    def test_default_on_missing_flag(self) -> None:
        step = DirectByIndex(
            field_name=None, ordinal=0, field_type=int, source_type=int, default=int, index=0
        )
        assert step.default_on_missing is True


class TestIntrospect:
    def test_dataclass_is_name_addressed(self) -> None:
        schema = introspect(Account)
        assert schema.addressing is AddressingMode.NAME
        assert [f.name for f in schema.fields] == ["id", "name"]
        assert [f.ordinal for f in schema.fields] == [0, 1]
        assert schema.fields[1].annotation is str
        assert dict(schema.fields[1].raw_attributes) == {"rename": "full_name"}
        assert dict(schema.raw_container) == {"rename_all": "snake_case"}

    def test_namedtuple_is_position_addressed(self) -> None:
        schema = introspect(Pair)
        assert schema.addressing is AddressingMode.POSITION
        assert [f.annotation for f in schema.fields] == [int, str]

    def test_tuple_alias_has_no_names(self) -> None:
        schema = introspect(tuple[int, Annotated[str, column(default=True)]])
        assert schema.addressing is AddressingMode.POSITION
        assert [f.name for f in schema.fields] == [None, None]
        assert dict(schema.fields[1].raw_attributes) == {"default": True}

    def test_pydantic_metadata(self) -> None:
        schema = introspect(Profile)
        assert [f.name for f in schema.fields] == ["user_id", "nickname"]
        assert dict(schema.fields[1].raw_attributes) == {"rename": "nick"}
        assert schema.fields[1].declared_default is not None
        assert schema.fields[1].declared_default() == "anon"

    def test_plain_class(self) -> None:
        schema = introspect(PlainUser)
        assert [f.name for f in schema.fields] == ["id", "email", "active"]
        assert schema.fields[2].declared_default() is True

    def test_unit_schema_rejected(self) -> None:
        with pytest.raises(UnsupportedSchemaError, match="no fields"):
            introspect(Empty)

    def test_empty_tuple_rejected(self) -> None:
        with pytest.raises(UnsupportedSchemaError, match="no fields"):
            introspect(tuple[()])

    def test_variadic_tuple_rejected(self) -> None:
        with pytest.raises(UnsupportedSchemaError, match="Variable-length"):
            introspect(tuple[int, ...])

    def test_enum_rejected(self) -> None:
        with pytest.raises(UnsupportedSchemaError, match="Enums are not supported"):
            introspect(Color)

    def test_union_rejected(self) -> None:
        with pytest.raises(UnsupportedSchemaError, match="Unions"):
            introspect(Account | None)


class TestStrategySelection:
    def test_direct_by_name(self, registry: CapabilityRegistry) -> None:
        plan = build_plan(Account, registry)
        assert plan.addressing is AddressingMode.NAME
        assert all(isinstance(s, DirectByName) for s in plan.steps)
        assert [s.column for s in plan.steps] == ["id", "full_name"]  # type: ignore[attr-defined]

    def test_all_four_strategies(self, registry: CapabilityRegistry) -> None:
        plan = build_plan(Order, registry)
        id_step, shipping, price, owner = plan.steps

        assert isinstance(id_step, DirectByName)
        assert id_step.column == "id"

        assert isinstance(shipping, Flatten)
        assert shipping.source_type is Address
        assert shipping.converter is None

        assert isinstance(price, Flatten)
        assert price.source_type is RawPrice
        assert price.field_type is Price
        assert price.converter is not None

        assert isinstance(owner, DirectThenConvert)
        assert owner.key == "owner"
        assert owner.source_type is str
        assert owner.field_type is UUID

    def test_direct_by_index_ignores_rename(self, registry: CapabilityRegistry) -> None:
        plan = build_plan(Pair, registry)
        assert plan.addressing is AddressingMode.POSITION
        assert all(isinstance(s, DirectByIndex) for s in plan.steps)
        assert [s.index for s in plan.steps] == [0, 1]  # type: ignore[attr-defined]

    def test_position_ignores_rename_all(self, registry: CapabilityRegistry) -> None:
        plan = PlanBuilder(Pair, registry).rename_all("SCREAMING_SNAKE_CASE").build()
        assert [s.index for s in plan.steps] == [0, 1]  # type: ignore[attr-defined]

    def test_try_from_in_position_mode(self, registry: CapabilityRegistry) -> None:
        plan = build_plan(tuple[Annotated[UUID, column(try_from=str)], int], registry)
        first = plan.steps[0]
        assert isinstance(first, DirectThenConvert)
        assert first.key == 0

    def test_steps_follow_declaration_order(self, registry: CapabilityRegistry) -> None:
        plan = build_plan(Order, registry)
        assert plan.field_names == ["id", "shipping", "price", "owner"]
        assert [s.ordinal for s in plan.steps] == [0, 1, 2, 3]


class TestRequirements:
    def test_direct_requires_decode_and_type(self, registry: CapabilityRegistry) -> None:
        plan = build_plan(Account, registry)
        assert plan.requirements == frozenset(
            {
                Requirement(Capability.DECODE, (int,)),
                Requirement(Capability.TYPE_COMPATIBLE, (int,)),
                Requirement(Capability.DECODE, (str,)),
                Requirement(Capability.TYPE_COMPATIBLE, (str,)),
            }
        )

    def test_flatten_and_convert_requirements(self, registry: CapabilityRegistry) -> None:
        plan = build_plan(Order, registry)
        assert Requirement(Capability.NESTED_MAPPING, (Address,)) in plan.requirements
        assert Requirement(Capability.NESTED_MAPPING, (RawPrice,)) in plan.requirements
        assert Requirement(Capability.CONVERTIBLE, (RawPrice, Price)) in plan.requirements
        assert Requirement(Capability.DECODE, (str,)) in plan.requirements
        assert Requirement(Capability.CONVERTIBLE, (str, UUID)) in plan.requirements
        # The converted-to types are never decoded directly.
        assert Requirement(Capability.DECODE, (UUID,)) not in plan.requirements
        assert Requirement(Capability.NESTED_MAPPING, (Price,)) not in plan.requirements

    def test_missing_decode_capability(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(CapabilityError, match="decode") as exc_info:
            build_plan(HasOpaque, registry)
        assert exc_info.value.field_name == "HasOpaque.thing"
        assert exc_info.value.capability is Capability.DECODE

    def test_missing_nested_capability(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(CapabilityError, match="nested row mapping"):
            build_plan(FlatInt, registry)

    def test_missing_conversion_capability(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(CapabilityError, match="fallible conversion"):
            build_plan(BadConversion, registry)

    def test_custom_converter_satisfies_requirement(self, registry: CapabilityRegistry) -> None:
        registry.register_converter(bytes, Address, lambda b: Address(*b.decode().split(",")))
        plan = build_plan(BadConversion, registry)
        assert isinstance(plan.steps[0], DirectThenConvert)


class TestBuildErrors:
    def test_flatten_with_rename(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(AttributeConfigError, match="FlattenRenamed.address"):
            build_plan(FlattenRenamed, registry)

    def test_unit_schema(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(UnsupportedSchemaError, match="no fields"):
            build_plan(Empty, registry)

    def test_default_without_default_value(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(UnsupportedSchemaError, match="has no default value"):
            build_plan(NoDefault, registry)

    def test_recursive_flatten(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(UnsupportedSchemaError, match="Recursive flatten"):
            build_plan(Node, registry)

    def test_unknown_override_field(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(AttributeConfigError, match="nope"):
            PlanBuilder(Account, registry).field("nope", default=True).build()


class TestPlanBuilderOverrides:
    def test_field_override_rename(self, registry: CapabilityRegistry) -> None:
        plan = PlanBuilder(Account, registry).field("name", rename="display").build()
        assert plan.steps[1].column == "display"  # type: ignore[attr-defined]

    def test_rename_all_override_keeps_explicit_rename(
        self, registry: CapabilityRegistry
    ) -> None:
        plan = PlanBuilder(Account, registry).rename_all("SCREAMING_SNAKE_CASE").build()
        assert [s.column for s in plan.steps] == ["ID", "full_name"]  # type: ignore[attr-defined]

    def test_override_adds_default(self, registry: CapabilityRegistry) -> None:
        plan = PlanBuilder(Account, registry).field("id", default=True).build()
        assert plan.steps[0].default_on_missing is True
        assert plan.steps[0].default() == 0  # type: ignore[misc]

    def test_override_resolves_contradiction(self, registry: CapabilityRegistry) -> None:
        plan = PlanBuilder(FlattenRenamed, registry).field("address", rename=None).build()
        assert isinstance(plan.steps[0], Flatten)

    def test_declared_defaults_win(self, registry: CapabilityRegistry) -> None:
        plan = build_plan(DeclaredDefault, registry)
        assert plan.steps[0].default() == 5  # type: ignore[misc]
        assert plan.steps[1].default() == ["x"]  # type: ignore[misc]

    def test_build_logs_plan(
        self, registry: CapabilityRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="row_derive.mapping.builder"):
            build_plan(Account, registry)
        assert "Compiled decode plan for Account" in caplog.text

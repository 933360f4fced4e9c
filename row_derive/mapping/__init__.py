"""Mapping layer - compile schemas into decode plans and run them over rows."""

from __future__ import annotations

from row_derive.mapping.attributes import (
    ColumnSpec,
    ContainerAttributes,
    FieldAttributes,
    column,
    column_name_for,
    resolve_container_attributes,
    resolve_field_attributes,
)
from row_derive.mapping.builder import PlanBuilder, build_plan
from row_derive.mapping.executor import execute, run_step
from row_derive.mapping.model import FromRow, derive_from_row
from row_derive.mapping.plan import (
    DecodePlan,
    DecodeStep,
    DirectByIndex,
    DirectByName,
    DirectThenConvert,
    Flatten,
    Requirement,
)
from row_derive.mapping.protocol import Mapper
from row_derive.mapping.schema import FieldSchema, StructSchema, introspect

__all__ = [
    "FromRow",
    "derive_from_row",
    "Mapper",
    "PlanBuilder",
    "build_plan",
    "execute",
    "run_step",
    "column",
    "column_name_for",
    "resolve_field_attributes",
    "resolve_container_attributes",
    "ColumnSpec",
    "FieldAttributes",
    "ContainerAttributes",
    "DecodePlan",
    "DecodeStep",
    "DirectByName",
    "DirectByIndex",
    "DirectThenConvert",
    "Flatten",
    "Requirement",
    "FieldSchema",
    "StructSchema",
    "introspect",
]

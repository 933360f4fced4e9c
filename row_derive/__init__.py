"""row-derive - compile annotated classes into row decode plans."""

from __future__ import annotations

from row_derive.core.config import RegistryConfig
from row_derive.core.enums import AddressingMode, Capability, NamingConvention
from row_derive.core.exceptions import (
    AttributeConfigError,
    CapabilityError,
    ColumnNotFoundError,
    ConversionError,
    DecodeFailure,
    RowDecodeError,
    RowDeriveError,
    TypeMismatchError,
    UnsupportedSchemaError,
)
from row_derive.core.naming import convert
from row_derive.core.registry import CapabilityRegistry, default_registry
from row_derive.core.row import MappingRow, Row, SequenceRow, SqliteRow, as_row
from row_derive.mapping.attributes import column
from row_derive.mapping.builder import PlanBuilder, build_plan
from row_derive.mapping.executor import execute
from row_derive.mapping.model import FromRow, derive_from_row
from row_derive.mapping.plan import DecodePlan

__all__ = [
    # Mapping
    "FromRow",
    "derive_from_row",
    "column",
    "PlanBuilder",
    "build_plan",
    "execute",
    "DecodePlan",
    # Registry
    "CapabilityRegistry",
    "RegistryConfig",
    "default_registry",
    # Rows
    "Row",
    "MappingRow",
    "SequenceRow",
    "SqliteRow",
    "as_row",
    # Naming
    "convert",
    # Enums
    "NamingConvention",
    "AddressingMode",
    "Capability",
    # Exceptions
    "RowDeriveError",
    "RowDecodeError",
    "ColumnNotFoundError",
    "TypeMismatchError",
    "DecodeFailure",
    "ConversionError",
    "UnsupportedSchemaError",
    "AttributeConfigError",
    "CapabilityError",
]

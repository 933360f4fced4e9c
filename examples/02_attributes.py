"""
Example 02: Column attributes

This example demonstrates renaming, flattening, fallible conversion and
default-on-missing, plus the errors raised when a type cannot be decoded.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from row_derive import (
    ColumnNotFoundError,
    ConversionError,
    FromRow,
    UnsupportedSchemaError,
    column,
)


@dataclass
class Address:
    street: str
    city: str


@dataclass
class Customer:
    __row_config__ = {"rename_all": "camelCase"}

    customer_id: Annotated[UUID, column(try_from=str)]
    full_name: Annotated[str, column(rename="name")]
    address: Annotated[Address, column(flatten=True)]
    credit: Annotated[Decimal, column(try_from=str, default=True)]


class Opaque:
    def __init__(self, handle):
        self.handle = handle


@dataclass
class Broken:
    value: Opaque


def main():
    mapper = FromRow(Customer)
    print("=== Column Attributes ===\n")

    row = {
        "customerId": "12345678-1234-5678-1234-567812345678",
        "name": "Alice",
        "street": "Main St",
        "city": "Springfield",
        "credit": "99.95",
    }
    print("1. Full row:")
    print(f"   {mapper.map_one(row)}\n")

    print("2. Missing defaulted column:")
    print(f"   credit = {mapper.map_one({k: v for k, v in row.items() if k != 'credit'}).credit}\n")

    print("3. Errors:")
    try:
        mapper.map_one({**row, "customerId": "nope"})
    except ConversionError as e:
        print(f"   ConversionError on {e.field_name}: {e}")
    try:
        mapper.map_one({k: v for k, v in row.items() if k != "city"})
    except ColumnNotFoundError as e:
        print(f"   ColumnNotFoundError on {e.field_name}: {e}")
    try:
        FromRow(Broken)
    except UnsupportedSchemaError as e:
        print(f"   UnsupportedSchemaError: {e}")


if __name__ == "__main__":
    main()

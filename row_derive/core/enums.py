"""Enumerations shared by the attribute model, builder and registry."""

from __future__ import annotations

from enum import Enum


class NamingConvention(Enum):
    """Container-wide column naming conventions (``rename_all``)."""

    LOWERCASE = "lowercase"
    UPPERCASE = "UPPERCASE"
    SNAKE_CASE = "snake_case"
    SCREAMING_SNAKE_CASE = "SCREAMING_SNAKE_CASE"
    KEBAB_CASE = "kebab-case"
    SCREAMING_KEBAB_CASE = "SCREAMING-KEBAB-CASE"
    CAMEL_CASE = "camelCase"
    PASCAL_CASE = "PascalCase"

    @classmethod
    def parse(cls, text: str | NamingConvention) -> NamingConvention:
        """Accept a member, its value (``"kebab-case"``) or its name (``"KEBAB_CASE"``)."""
        if isinstance(text, cls):
            return text
        try:
            return cls(text)
        except ValueError:
            pass
        key = str(text).strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(
                f"Unknown naming convention '{text}'. "
                f"Expected one of: {[c.value for c in cls]}"
            ) from None


class AddressingMode(Enum):
    """How a schema's fields locate their columns."""

    NAME = "name"
    POSITION = "position"


class Capability(Enum):
    """Capabilities a decode step may require of a type."""

    DECODE = "decode"
    TYPE_COMPATIBLE = "type compatibility"
    NESTED_MAPPING = "nested row mapping"
    CONVERTIBLE = "fallible conversion"

"""Registry configuration.

RegistryConfig is a Pydantic model for type-safe decoder settings.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RegistryConfig(BaseModel):
    """Settings for a CapabilityRegistry."""

    model_config = ConfigDict(frozen=True)

    # Validation mode of the pydantic TypeAdapter fallback decoder.
    strict: bool = True
    # Decode types without a registered decoder through pydantic.
    pydantic_fallback: bool = True
    # Accept integer 0/1 for bool columns (SQLite stores booleans as integers).
    bool_from_int: bool = True

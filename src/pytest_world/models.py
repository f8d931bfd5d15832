"""Base Pydantic models.

This module defines the foundational model classes used by the engine.
It enforces immutability and strict schema validation so that failures,
signature descriptors and settings cannot change once created.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for engine records.

    Design principles enforced by this model:
        - Immutability: records cannot be modified after creation.
          Failures and signature descriptors are shared between units
          of work and must not change under concurrent readers.
        - Strict schema validation: unknown or extra fields are rejected.
        - Arbitrary types: records may carry callables, exceptions and
          Python classes.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    This class serves as the root for settings models responsible for
    resolving runtime configuration (for example, environment variables,
    CI-provided values, or command-line overrides).

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows the surrounding environment to contain unrelated
          variables without breaking configuration resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )

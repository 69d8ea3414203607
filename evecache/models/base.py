"""Base model for all evecache Pydantic models.

Domain objects built from the reference dataset are immutable, so the base
model is frozen.
"""

from pydantic import BaseModel, ConfigDict


class EveBaseModel(BaseModel):
    """Base model class for all evecache Pydantic models."""

    model_config = ConfigDict(
        # Reference values never change once loaded
        frozen=True,
        # Strip whitespace from string fields
        str_strip_whitespace=True,
        # Use enum values in serialization
        use_enum_values=True,
        extra="forbid",
    )

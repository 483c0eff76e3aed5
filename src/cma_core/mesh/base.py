"""Shared pydantic configuration for catalog value types."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MeshModel(BaseModel):
    """Immutable value snapshot serialized with the camelCase names of the schema DSL."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

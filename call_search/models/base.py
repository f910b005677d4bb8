"""Shared pydantic base for wire models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Accepts snake_case or camelCase on input, serializes camelCase by alias."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenWireModel(WireModel):
    """Immutable snapshot received from an upstream provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

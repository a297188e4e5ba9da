"""
Shared model base classes.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys; accepts snake_case or camelCase on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(CamelModel):
    """Immutable variant of CamelModel."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

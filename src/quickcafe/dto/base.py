"""Shared base model for API contracts."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Snake_case attributes in Python, camelCase names on the wire.

    Input accepts either spelling (``priceRange`` or ``price_range``);
    responses are serialized with the camelCase aliases.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

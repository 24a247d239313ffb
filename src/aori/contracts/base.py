"""Shared pydantic base for wire contracts."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AoriModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict:
        """Serialize for a JSON request body (camelCase, no unset optionals)."""
        return self.model_dump(by_alias=True, exclude_none=True)

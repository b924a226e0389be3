"""
Base model configuration
Shared pydantic base with camelCase aliases for the review UI
"""

from typing import Any

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


class BaseModel(PydanticBaseModel):
    """Base model with camelCase conversion for JavaScript clients.

    This base model configuration:
    - Accepts camelCase payloads for snake_case python fields
    - Forbids unknown fields to ensure type safety
    """

    model_config = ConfigDict(
        # Accepts camelCase arguments for snake_case python fields.
        #
        # See: <https://docs.pydantic.dev/2.10/concepts/alias/#using-an-aliasgenerator>
        alias_generator=to_camel,
        # Allow populating by both field name and alias
        populate_by_name=True,
        # See: <https://docs.pydantic.dev/2.10/concepts/models/#extra-data>
        extra="forbid",
    )

    def model_dump(self, **kwargs):
        """Override model_dump to always use aliases (camelCase) by default."""
        kwargs.setdefault("by_alias", True)
        return super().model_dump(**kwargs)

    def model_dump_json(self, **kwargs):
        """Override model_dump_json to always use aliases (camelCase) by default."""
        kwargs.setdefault("by_alias", True)
        return super().model_dump_json(**kwargs)


class OperationResponse(BaseModel):
    """Common base response for handlers that return operation status."""

    success: bool
    message: str = ""
    error: str = ""


class OperationDataResponse(OperationResponse):
    """Operation response that includes an optional data payload."""

    data: Any | None = None


class TimedOperationResponse(OperationDataResponse):
    """Operation response with timestamp."""

    timestamp: str = ""

"""Shared schema base (camelCase on the wire) and the uniform response envelope."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Fields are snake_case in Python and camelCase in JSON; ORM rows load directly."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class FieldErrorOut(BaseModel):
    field: str
    message: str


class Envelope(BaseModel, Generic[T]):
    """Every response: {success, message?, data?}. Errors add `errors`."""

    success: bool = True
    message: str | None = None
    data: T | None = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    message: str
    errors: list[FieldErrorOut] | None = None
    field: str | None = None
    error: Any | None = Field(default=None, description="Error detail (non-production only)")

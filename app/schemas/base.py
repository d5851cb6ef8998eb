"""Base schemas for the application."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema class with common configuration.

    JSON keys are camelCase; snake_case field names are accepted on input too.
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class BaseModelSchema(BaseSchema):
    """Base schema for database models."""

    id: UUID
    created_at: datetime
    updated_at: datetime


class PaginationMeta(BaseSchema):
    """Pagination block of list responses."""

    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool


class ResponseSchema(BaseSchema):
    """Standard API response envelope."""

    success: bool = True
    message: str
    data: Optional[dict[str, Any]] = None
    pagination: Optional[PaginationMeta] = None

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler):
        # ``data`` and ``pagination`` are left out rather than sent as null
        return {key: value for key, value in handler(self).items() if value is not None}


class ErrorDetail(BaseSchema):
    message: str
    status_code: int
    stack: Optional[str] = Field(default=None)


class ErrorResponse(BaseSchema):
    """Error envelope returned by the exception handlers."""

    success: bool = False
    error: ErrorDetail

    @model_serializer(mode="wrap")
    def _omit_empty_stack(self, handler):
        payload = handler(self)
        if payload["error"].get("stack") is None:
            payload["error"].pop("stack", None)
        return payload

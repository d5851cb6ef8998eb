"""Embedded references shared by comment and file schemas."""

from uuid import UUID

from .base import BaseSchema


class IssueSummary(BaseSchema):
    """Embedded issue reference on comments and files."""

    id: UUID
    title: str
    status: str

"""Issue schemas for request/response serialization."""

from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator

from .base import BaseModelSchema, BaseSchema
from .comment import CommentResponse
from .file import FileResponse
from .user import UserSummary

IssueStatus = Literal["pending", "complete"]
IssuePriority = Literal["low", "medium", "high"]


def _strip_required(v, label: str):
    # Runs before the length check so padding does not count
    if not isinstance(v, str):
        return v
    v = v.strip()
    if not v:
        raise ValueError(f"{label} cannot be empty")
    return v


class IssueCreate(BaseSchema):
    """Schema for creating a new issue. Status always starts as pending."""

    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=2000)
    priority: IssuePriority = "medium"
    assigned_to: Optional[UUID] = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _strip_required(v, "Title")

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _strip_required(v, "Description")


class IssueUpdate(BaseSchema):
    """Schema for updating an issue.

    Only fields present in the request are applied; an explicit
    ``assignedTo: null`` removes the assignee.
    """

    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    priority: Optional[IssuePriority] = None
    assigned_to: Optional[UUID] = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v, "Title")

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v, "Description")


class IssueStatusUpdate(BaseSchema):
    status: IssueStatus


class IssueFilter(BaseSchema):
    """Schema for filtering issues."""

    status: Optional[IssueStatus] = None
    priority: Optional[IssuePriority] = None
    assigned_to: Optional[UUID] = None
    created_by: Optional[UUID] = None
    search: Optional[str] = Field(None, max_length=100)


class IssueResponse(BaseModelSchema):
    """Schema for issue response with joined people and reference counts."""

    title: str
    description: str
    status: str
    priority: str
    assigned_to: Optional[UserSummary] = None
    created_by: UserSummary
    comment_count: int = 0
    file_count: int = 0

    @classmethod
    def from_issue(cls, issue, comment_count: int = 0, file_count: int = 0) -> "IssueResponse":
        return cls(
            id=issue.id,
            title=issue.title,
            description=issue.description,
            status=issue.status,
            priority=issue.priority,
            assigned_to=UserSummary.model_validate(issue.assignee) if issue.assignee else None,
            created_by=UserSummary.model_validate(issue.creator),
            comment_count=comment_count,
            file_count=file_count,
            created_at=issue.created_at,
            updated_at=issue.updated_at,
        )


class IssueDetailResponse(IssueResponse):
    """Issue with its comments (newest first) and files expanded."""

    comments: list[CommentResponse] = []
    files: list[FileResponse] = []


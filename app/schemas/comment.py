"""Comment schemas for request/response serialization."""

from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from .base import BaseModelSchema, BaseSchema
from .summary import IssueSummary
from .user import UserSummary


class CommentContent(BaseSchema):
    """Body of comment create and update requests."""

    content: str = Field(..., max_length=1000)

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v):
        # Trimmed before the length check
        if not isinstance(v, str):
            return v
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class CommentCreate(CommentContent):
    pass


class CommentUpdate(CommentContent):
    pass


class CommentResponse(BaseModelSchema):
    content: str
    issue_id: UUID
    user_id: UUID
    author: Optional[UserSummary] = None
    issue: Optional[IssueSummary] = None

    @classmethod
    def from_comment(cls, comment, include_issue: bool = False) -> "CommentResponse":
        return cls(
            id=comment.id,
            content=comment.content,
            issue_id=comment.issue_id,
            user_id=comment.user_id,
            author=UserSummary.model_validate(comment.author),
            issue=IssueSummary.model_validate(comment.issue) if include_issue else None,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )

"""Comment service layer with business logic."""

import logging
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

from app.exceptions.base import DatabaseError
from app.exceptions.comment import CommentNotFoundError, CommentPermissionError
from app.exceptions.issue import IssueNotFoundError
from app.services.integrity_service import ReferentialIntegrityService
from app.shared.pagination import PaginationParams, paginate
from models import Comment, Issue

logger = logging.getLogger(__name__)


class CommentService:
    """Service class for comment business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_comment(self, issue_id: UUID, content: str, user_id: UUID) -> Comment:
        """Add a comment to an existing issue."""
        await self._get_issue(issue_id)

        comment = Comment(content=content, issue_id=issue_id, user_id=user_id)
        try:
            self.db.add(comment)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to create comment: {str(e)}") from e

        logger.info("Comment %s added to issue %s by %s", comment.id, issue_id, user_id)
        return await self.get_comment(comment.id)

    async def get_comment(self, comment_id: UUID) -> Comment:
        """Get a comment with its author and issue loaded."""
        query = (
            select(Comment)
            .options(joinedload(Comment.author), joinedload(Comment.issue))
            .where(Comment.id == comment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        comment = result.unique().scalar_one_or_none()
        if comment is None:
            raise CommentNotFoundError()
        return comment

    async def update_comment(self, comment_id: UUID, content: str, user_id: UUID) -> Comment:
        """Edit a comment. Only its author may edit."""
        comment = await self.get_comment(comment_id)
        if comment.user_id != user_id:
            raise CommentPermissionError()

        comment.content = content
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to update comment: {str(e)}") from e

        return await self.get_comment(comment_id)

    async def delete_comment(self, comment_id: UUID, user_id: UUID) -> None:
        """Delete a comment. Its author or the issue's creator may delete."""
        comment = await self.get_comment(comment_id)
        if comment.user_id != user_id and comment.issue.created_by != user_id:
            raise CommentPermissionError(
                "You can only delete your own comments or comments on issues you created"
            )

        await ReferentialIntegrityService(self.db).delete_comment(comment)

    async def get_comments_for_issue(
        self, issue_id: UUID, pagination: PaginationParams
    ) -> Dict[str, Any]:
        """Comments on an issue, newest first. Empty for an unknown or deleted issue."""
        query = (
            select(Comment)
            .where(Comment.issue_id == issue_id)
            .order_by(desc(Comment.created_at), desc(Comment.id))
        )
        return await paginate(self.db, query, pagination, joinedload(Comment.author))

    async def get_user_comments(self, user_id: UUID, pagination: PaginationParams) -> Dict[str, Any]:
        """Comments written by a user across all issues, newest first."""
        query = (
            select(Comment)
            .where(Comment.user_id == user_id)
            .order_by(desc(Comment.created_at), desc(Comment.id))
        )
        return await paginate(
            self.db, query, pagination, joinedload(Comment.author), joinedload(Comment.issue)
        )

    async def get_recent_comments(self, limit: int = 10) -> list[Comment]:
        """Latest comments across all issues."""
        query = (
            select(Comment)
            .options(joinedload(Comment.author), joinedload(Comment.issue))
            .order_by(desc(Comment.created_at), desc(Comment.id))
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.unique().scalars().all())

    async def _get_issue(self, issue_id: UUID) -> Issue:
        issue = await self.db.get(Issue, issue_id)
        if issue is None:
            raise IssueNotFoundError()
        return issue

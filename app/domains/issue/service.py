"""Issue service layer with business logic."""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import desc, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

from app.exceptions.base import DatabaseError
from app.exceptions.issue import (
    AssigneeNotFoundError,
    IssueNotFoundError,
    IssuePermissionError,
)
from app.schemas.issue import IssueCreate, IssueFilter, IssueUpdate
from app.services.integrity_service import CascadeReport, ReferentialIntegrityService
from app.shared.pagination import PaginationParams, paginate
from models import Comment, File, Issue, User

logger = logging.getLogger(__name__)

ISSUE_LOAD_OPTIONS = (joinedload(Issue.creator), joinedload(Issue.assignee))


class IssueService:
    """Service class for issue business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_issue(self, issue_data: IssueCreate, user_id: UUID) -> Issue:
        """Create a new issue. Status always starts as pending."""
        if issue_data.assigned_to is not None:
            await self._ensure_user_exists(issue_data.assigned_to)

        issue = Issue(
            title=issue_data.title,
            description=issue_data.description,
            priority=issue_data.priority,
            status="pending",
            assigned_to=issue_data.assigned_to,
            created_by=user_id,
        )

        try:
            self.db.add(issue)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to create issue: {str(e)}") from e

        logger.info("Issue %s created by %s", issue.id, user_id)
        return await self.get_issue(issue.id)

    async def get_issue(self, issue_id: UUID) -> Issue:
        """Get an issue with creator and assignee loaded."""
        query = (
            select(Issue)
            .options(*ISSUE_LOAD_OPTIONS)
            .where(Issue.id == issue_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        issue = result.unique().scalar_one_or_none()
        if issue is None:
            raise IssueNotFoundError()
        return issue

    async def get_issue_detail(self, issue_id: UUID) -> Dict[str, Any]:
        """Get an issue together with its comments (newest first) and files."""
        issue = await self.get_issue(issue_id)

        comments = await self.db.execute(
            select(Comment)
            .options(joinedload(Comment.author))
            .where(Comment.issue_id == issue_id)
            .order_by(desc(Comment.created_at))
        )
        files = await self.db.execute(
            select(File)
            .options(joinedload(File.uploader))
            .where(File.issue_id == issue_id)
            .order_by(desc(File.uploaded_at))
        )
        return {
            "issue": issue,
            "comments": comments.unique().scalars().all(),
            "files": files.unique().scalars().all(),
        }

    async def get_issues_list(
        self, filters: IssueFilter, pagination: PaginationParams
    ) -> Dict[str, Any]:
        """Get paginated list of issues with filters, newest first."""
        query = select(Issue)

        if filters.status:
            query = query.where(Issue.status == filters.status)

        if filters.priority:
            query = query.where(Issue.priority == filters.priority)

        if filters.assigned_to:
            query = query.where(Issue.assigned_to == filters.assigned_to)

        if filters.created_by:
            query = query.where(Issue.created_by == filters.created_by)

        if filters.search:
            # Literal substring match; % and _ in the term are escaped
            query = query.where(
                or_(
                    Issue.title.icontains(filters.search, autoescape=True),
                    Issue.description.icontains(filters.search, autoescape=True),
                )
            )

        query = query.order_by(desc(Issue.created_at), desc(Issue.id))

        result = await paginate(self.db, query, pagination, *ISSUE_LOAD_OPTIONS)
        result["counts"] = await self.get_reference_counts([issue.id for issue in result["items"]])
        return result

    async def get_my_issues(
        self, user_id: UUID, role: str, filters: IssueFilter, pagination: PaginationParams
    ) -> Dict[str, Any]:
        """Issues assigned to or created by the user."""
        if role == "assigned":
            filters = filters.model_copy(update={"assigned_to": user_id, "created_by": None})
        else:
            filters = filters.model_copy(update={"created_by": user_id, "assigned_to": None})
        return await self.get_issues_list(filters, pagination)

    async def get_reference_counts(self, issue_ids: list[UUID]) -> Dict[UUID, tuple[int, int]]:
        """Live comment and file counts per issue, as ``{id: (comments, files)}``."""
        if not issue_ids:
            return {}

        comment_rows = await self.db.execute(
            select(Comment.issue_id, func.count())
            .where(Comment.issue_id.in_(issue_ids))
            .group_by(Comment.issue_id)
        )
        file_rows = await self.db.execute(
            select(File.issue_id, func.count())
            .where(File.issue_id.in_(issue_ids))
            .group_by(File.issue_id)
        )
        comment_counts = dict(comment_rows.all())
        file_counts = dict(file_rows.all())
        return {
            issue_id: (comment_counts.get(issue_id, 0), file_counts.get(issue_id, 0))
            for issue_id in issue_ids
        }

    async def update_issue(self, issue_id: UUID, issue_data: IssueUpdate, user_id: UUID) -> Issue:
        """Update an issue. Only the creator or the assignee may edit."""
        issue = await self.get_issue(issue_id)
        if not issue.can_edit(user_id):
            raise IssuePermissionError()

        update_data = issue_data.model_dump(exclude_unset=True)

        # assigned_to may be explicitly null to unassign
        if update_data.get("assigned_to") is not None:
            await self._ensure_user_exists(update_data["assigned_to"])

        for field, value in update_data.items():
            if field in ("title", "description", "priority") and value is None:
                continue
            setattr(issue, field, value)

        return await self._commit_and_reload(issue, "update")

    async def update_status(self, issue_id: UUID, status: str, user_id: UUID) -> Issue:
        """Set the issue status. Same permission rule as update."""
        issue = await self.get_issue(issue_id)
        if not issue.can_edit(user_id):
            raise IssuePermissionError(
                "You can only update status of issues you created or are assigned to"
            )

        issue.status = status
        return await self._commit_and_reload(issue, "status update")

    async def delete_issue(self, issue_id: UUID, user_id: UUID) -> CascadeReport:
        """Delete an issue with its comments and files. Creator only."""
        issue = await self.get_issue(issue_id)
        if issue.created_by != user_id:
            raise IssuePermissionError("Only the issue creator can delete this issue")

        report = await ReferentialIntegrityService(self.db).delete_issue(issue)
        logger.info("Issue %s deleted by %s", issue_id, user_id)
        return report

    async def _commit_and_reload(self, issue: Issue, action: str) -> Issue:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to {action} issue: {str(e)}") from e

        logger.info("Issue %s %s", issue.id, action)
        return await self.get_issue(issue.id)

    async def _ensure_user_exists(self, user_id: UUID) -> Optional[User]:
        user = await self.db.get(User, user_id)
        if user is None:
            raise AssigneeNotFoundError()
        return user

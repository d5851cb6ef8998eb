"""Issue API controller with FastAPI endpoints."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db
from app.domains.issue.service import IssueService
from app.schemas.base import ResponseSchema
from app.schemas.comment import CommentResponse
from app.schemas.file import FileResponse
from app.schemas.issue import (
    IssueCreate,
    IssueDetailResponse,
    IssueFilter,
    IssuePriority,
    IssueResponse,
    IssueStatus,
    IssueStatusUpdate,
    IssueUpdate,
)
from app.shared.pagination import PaginationParams, pagination_meta
from models.user import User

router = APIRouter(prefix="/api/issues", tags=["issues"])


def _issue_page(result: dict, message: str) -> ResponseSchema:
    counts = result["counts"]
    issues = [
        IssueResponse.from_issue(issue, *counts.get(issue.id, (0, 0))).to_json()
        for issue in result["items"]
    ]
    return ResponseSchema(
        message=message,
        data={"issues": issues},
        pagination=pagination_meta(result),
    )


async def _list_mine(
    role: Literal["assigned", "created"],
    message: str,
    status: IssueStatus | None,
    priority: IssuePriority | None,
    search: str | None,
    page: int,
    limit: int,
    current_user: User,
    db: AsyncSession,
) -> ResponseSchema:
    filters = IssueFilter(status=status, priority=priority, search=search)
    service = IssueService(db)
    result = await service.get_my_issues(
        current_user.id, role, filters, PaginationParams(page=page, limit=limit)
    )
    return _issue_page(result, message)


@router.get("", response_model=ResponseSchema)
async def get_issues(
    status: IssueStatus | None = Query(None),
    priority: IssuePriority | None = Query(None),
    assigned_to: UUID | None = Query(None, alias="assignedTo"),
    created_by: UUID | None = Query(None, alias="createdBy"),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated list of issues with optional filters."""
    filters = IssueFilter(
        status=status,
        priority=priority,
        assigned_to=assigned_to,
        created_by=created_by,
        search=search,
    )

    service = IssueService(db)
    result = await service.get_issues_list(filters, PaginationParams(page=page, limit=limit))
    return _issue_page(result, "Issues retrieved successfully")


@router.get("/my-assigned", response_model=ResponseSchema)
async def get_my_assigned_issues(
    status: IssueStatus | None = Query(None),
    priority: IssuePriority | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Issues assigned to the authenticated user."""
    return await _list_mine(
        "assigned",
        "Assigned issues retrieved successfully",
        status,
        priority,
        search,
        page,
        limit,
        current_user,
        db,
    )


@router.get("/my-created", response_model=ResponseSchema)
async def get_my_created_issues(
    status: IssueStatus | None = Query(None),
    priority: IssuePriority | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Issues created by the authenticated user."""
    return await _list_mine(
        "created",
        "Created issues retrieved successfully",
        status,
        priority,
        search,
        page,
        limit,
        current_user,
        db,
    )


@router.post("", response_model=ResponseSchema, status_code=201)
async def create_issue(
    issue_data: IssueCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a new issue."""
    service = IssueService(db)
    issue = await service.create_issue(issue_data, current_user.id)

    return ResponseSchema(
        message="Issue created successfully",
        data={"issue": IssueResponse.from_issue(issue).to_json()},
    )


@router.get("/{issue_id}", response_model=ResponseSchema)
async def get_issue(
    issue_id: UUID = Path(..., description="Issue ID"),
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get an issue with its comments and files."""
    service = IssueService(db)
    detail = await service.get_issue_detail(issue_id)

    comments = [CommentResponse.from_comment(comment) for comment in detail["comments"]]
    files = [FileResponse.from_file(file) for file in detail["files"]]
    base = IssueResponse.from_issue(detail["issue"], len(comments), len(files))
    issue = IssueDetailResponse(**base.model_dump(), comments=comments, files=files)

    return ResponseSchema(
        message="Issue retrieved successfully",
        data={"issue": issue.to_json()},
    )


@router.put("/{issue_id}", response_model=ResponseSchema)
async def update_issue(
    issue_id: UUID = Path(..., description="Issue ID"),
    issue_data: IssueUpdate = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update an issue."""
    service = IssueService(db)
    issue = await service.update_issue(issue_id, issue_data, current_user.id)
    counts = await service.get_reference_counts([issue.id])

    return ResponseSchema(
        message="Issue updated successfully",
        data={"issue": IssueResponse.from_issue(issue, *counts[issue.id]).to_json()},
    )


@router.patch("/{issue_id}/status", response_model=ResponseSchema)
async def update_issue_status(
    issue_id: UUID = Path(..., description="Issue ID"),
    status_data: IssueStatusUpdate = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark an issue pending or complete."""
    service = IssueService(db)
    issue = await service.update_status(issue_id, status_data.status, current_user.id)
    counts = await service.get_reference_counts([issue.id])

    return ResponseSchema(
        message="Issue status updated successfully",
        data={"issue": IssueResponse.from_issue(issue, *counts[issue.id]).to_json()},
    )


@router.delete("/{issue_id}", response_model=ResponseSchema)
async def delete_issue(
    issue_id: UUID = Path(..., description="Issue ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete an issue together with its comments and files."""
    service = IssueService(db)
    await service.delete_issue(issue_id, current_user.id)

    return ResponseSchema(message="Issue deleted successfully")

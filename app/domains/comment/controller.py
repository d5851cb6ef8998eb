"""Comment API controller with FastAPI endpoints."""

from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db
from app.domains.comment.service import CommentService
from app.schemas.base import ResponseSchema
from app.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from app.shared.pagination import PaginationParams, pagination_meta
from models.user import User

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.get("/my-comments", response_model=ResponseSchema)
async def get_my_comments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Comments written by the authenticated user."""
    service = CommentService(db)
    result = await service.get_user_comments(
        current_user.id, PaginationParams(page=page, limit=limit)
    )

    return ResponseSchema(
        message="Your comments retrieved successfully",
        data={
            "comments": [
                CommentResponse.from_comment(comment, include_issue=True).to_json()
                for comment in result["items"]
            ]
        },
        pagination=pagination_meta(result),
    )


@router.get("/recent", response_model=ResponseSchema)
async def get_recent_comments(
    limit: int = Query(10, ge=1, le=50),
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Latest comments across all issues."""
    service = CommentService(db)
    comments = await service.get_recent_comments(limit)

    return ResponseSchema(
        message="Recent comments retrieved successfully",
        data={
            "comments": [
                CommentResponse.from_comment(comment, include_issue=True).to_json()
                for comment in comments
            ]
        },
    )


@router.get("/issue/{issue_id}", response_model=ResponseSchema)
async def get_comments_for_issue(
    issue_id: UUID = Path(..., description="Issue ID"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Comments on an issue, newest first."""
    service = CommentService(db)
    result = await service.get_comments_for_issue(
        issue_id, PaginationParams(page=page, limit=limit)
    )

    return ResponseSchema(
        message="Comments retrieved successfully",
        data={
            "comments": [CommentResponse.from_comment(c).to_json() for c in result["items"]]
        },
        pagination=pagination_meta(result),
    )


@router.post("/issue/{issue_id}", response_model=ResponseSchema, status_code=201)
async def create_comment(
    issue_id: UUID = Path(..., description="Issue ID"),
    comment_data: CommentCreate = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add a comment to an issue."""
    service = CommentService(db)
    comment = await service.create_comment(issue_id, comment_data.content, current_user.id)

    return ResponseSchema(
        message="Comment created successfully",
        data={"comment": CommentResponse.from_comment(comment).to_json()},
    )


@router.get("/{comment_id}", response_model=ResponseSchema)
async def get_comment(
    comment_id: UUID = Path(..., description="Comment ID"),
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a comment with its author and issue title."""
    service = CommentService(db)
    comment = await service.get_comment(comment_id)

    return ResponseSchema(
        message="Comment retrieved successfully",
        data={"comment": CommentResponse.from_comment(comment, include_issue=True).to_json()},
    )


@router.put("/{comment_id}", response_model=ResponseSchema)
async def update_comment(
    comment_id: UUID = Path(..., description="Comment ID"),
    comment_data: CommentUpdate = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a comment. Author only."""
    service = CommentService(db)
    comment = await service.update_comment(comment_id, comment_data.content, current_user.id)

    return ResponseSchema(
        message="Comment updated successfully",
        data={"comment": CommentResponse.from_comment(comment).to_json()},
    )


@router.delete("/{comment_id}", response_model=ResponseSchema)
async def delete_comment(
    comment_id: UUID = Path(..., description="Comment ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a comment. Author or the issue's creator."""
    service = CommentService(db)
    await service.delete_comment(comment_id, current_user.id)

    return ResponseSchema(message="Comment deleted successfully")

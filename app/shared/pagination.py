"""Pagination utilities."""

from typing import Any, Dict

from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.sql import Select

from app.schemas.base import PaginationMeta


class PaginationParams(BaseModel):
    """Pagination parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    limit: int = Field(default=20, ge=1, le=100, description="Page size")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


async def paginate(
    db: AsyncSession, query: Select, pagination: PaginationParams, *options
) -> Dict[str, Any]:
    """
    Paginate a SQLAlchemy query.

    Args:
        db: Database session
        query: SQLAlchemy select query
        pagination: Pagination parameters
        *options: Loader options applied to the page query only

    Returns:
        Dictionary with pagination info and items
    """

    # Count over the filtered query; ordering is irrelevant for the total
    subquery = query.order_by(None).subquery()
    count_query = select(func.count()).select_from(subquery)
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    pages = (total + pagination.limit - 1) // pagination.limit  # Ceiling division
    has_next = pagination.page < pages
    has_prev = pagination.page > 1

    paginated_query = query.offset(pagination.offset).limit(pagination.limit)
    if options:
        paginated_query = paginated_query.options(*options)

    result = await db.execute(paginated_query)
    items = result.unique().scalars().all()

    return {
        "items": items,
        "total": total,
        "page": pagination.page,
        "limit": pagination.limit,
        "pages": pages,
        "has_next": has_next,
        "has_prev": has_prev,
    }


def pagination_meta(result: Dict[str, Any]) -> PaginationMeta:
    """Build the response pagination block from a ``paginate`` result."""
    return PaginationMeta(
        page=result["page"],
        limit=result["limit"],
        total=result["total"],
        pages=result["pages"],
        has_next=result["has_next"],
        has_prev=result["has_prev"],
    )

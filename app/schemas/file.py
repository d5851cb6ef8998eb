"""File attachment schemas for response serialization."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from .base import BaseSchema
from .summary import IssueSummary
from .user import UserSummary


class FileResponse(BaseSchema):
    """File metadata. The on-disk path is never exposed."""

    id: UUID
    stored_name: str
    original_name: str
    mime_type: str
    size_bytes: int
    size_formatted: str
    extension: str
    issue_id: UUID
    uploaded_by: UUID
    uploaded_at: datetime
    uploader: Optional[UserSummary] = None
    issue: Optional[IssueSummary] = None

    @classmethod
    def from_file(
        cls, file, include_uploader: bool = True, include_issue: bool = False
    ) -> "FileResponse":
        return cls(
            id=file.id,
            stored_name=file.stored_name,
            original_name=file.original_name,
            mime_type=file.mime_type,
            size_bytes=file.size_bytes,
            size_formatted=file.size_formatted,
            extension=file.extension,
            issue_id=file.issue_id,
            uploaded_by=file.uploaded_by,
            uploaded_at=file.uploaded_at,
            uploader=UserSummary.model_validate(file.uploader) if include_uploader else None,
            issue=IssueSummary.model_validate(file.issue) if include_issue else None,
        )


class FileIntegrityEntry(BaseSchema):
    file_id: UUID
    filename: str
    exists: bool
    size: int
    uploaded_at: datetime


class FileIntegrityReport(BaseSchema):
    total_files: int
    existing_files: int
    missing_files: int
    files: list[FileIntegrityEntry]


class OverallFileStats(BaseSchema):
    total_files: int
    total_size: int
    avg_size: float


class MimeTypeStats(BaseSchema):
    type: str
    count: int
    total_size: int


class FileStatsResponse(BaseSchema):
    overall: OverallFileStats
    by_mime_type: list[MimeTypeStats]

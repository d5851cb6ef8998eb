"""File attachment service layer with business logic."""

import logging
from typing import Any, Dict, Optional, Sequence
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy import desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

from app.core.config import settings
from app.domains.file.storage import (
    ALLOWED_MIME_TYPES,
    BlobStorage,
    StoredBlob,
    base_mime_type,
    is_allowed_mime_type,
)
from app.exceptions.base import DatabaseError, FileUploadError
from app.exceptions.file import AttachmentNotFoundError, AttachmentPermissionError
from app.exceptions.issue import IssueNotFoundError
from app.services.integrity_service import CascadeReport, ReferentialIntegrityService
from app.shared.pagination import PaginationParams, paginate
from models import File, Issue

logger = logging.getLogger(__name__)


class FileService:
    """Service class for file attachment business logic."""

    def __init__(self, db: AsyncSession, storage: Optional[BlobStorage] = None):
        self.db = db
        self.storage = storage or BlobStorage()

    async def upload_files(
        self, issue_id: UUID, uploads: Sequence[UploadFile], user_id: UUID
    ) -> list[File]:
        """Store a batch of uploads on an issue, all or nothing.

        Count and type are checked before anything is written. Blobs are then
        streamed to disk with the size limit enforced; if any file or the
        final commit fails, every blob written for the batch is removed and
        no record is kept.
        """
        issue = await self._get_issue(issue_id)
        if not issue.can_edit(user_id):
            raise AttachmentPermissionError(
                "You can only upload files to issues you created or are assigned to"
            )

        uploads = [upload for upload in uploads if upload is not None]
        if not uploads:
            raise FileUploadError("No files uploaded")
        if len(uploads) > settings.max_files_per_upload:
            raise FileUploadError(
                f"Too many files. Maximum {settings.max_files_per_upload} files allowed per request"
            )
        for upload in uploads:
            if not is_allowed_mime_type(upload.content_type):
                raise FileUploadError(
                    f"File type {base_mime_type(upload.content_type) or 'unknown'} is not allowed. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_MIME_TYPES))}"
                )

        written: list[StoredBlob] = []
        try:
            records = []
            for upload in uploads:
                blob = await self.storage.save(upload)
                written.append(blob)
                records.append(
                    File(
                        stored_name=blob.stored_name,
                        original_name=upload.filename or blob.stored_name,
                        mime_type=base_mime_type(upload.content_type),
                        size_bytes=blob.size,
                        blob_path=blob.path,
                        issue_id=issue_id,
                        uploaded_by=user_id,
                    )
                )
            self.db.add_all(records)
            await self.db.commit()
        except FileUploadError:
            await self._discard_batch(written)
            raise
        except SQLAlchemyError as e:
            await self._discard_batch(written)
            raise DatabaseError(f"Failed to save file records: {str(e)}") from e

        logger.info("%d file(s) uploaded to issue %s by %s", len(records), issue_id, user_id)
        return await self._get_files_by_ids([record.id for record in records])

    async def get_file(self, file_id: UUID) -> File:
        """Get file metadata with uploader and issue loaded."""
        query = (
            select(File)
            .options(joinedload(File.uploader), joinedload(File.issue))
            .where(File.id == file_id)
        )
        result = await self.db.execute(query)
        file = result.unique().scalar_one_or_none()
        if file is None:
            raise AttachmentNotFoundError()
        return file

    async def get_download(self, file_id: UUID) -> File:
        """Get a file whose blob is present on disk."""
        file = await self.get_file(file_id)
        if not await self.storage.exists(file.blob_path):
            logger.error("Blob missing for file %s at %s", file.id, file.blob_path)
            raise AttachmentNotFoundError("File not found on disk")
        return file

    async def get_files_for_issue(self, issue_id: UUID) -> list[File]:
        """Files attached to an issue, newest first. Empty for an unknown or deleted issue."""
        query = (
            select(File)
            .options(joinedload(File.uploader))
            .where(File.issue_id == issue_id)
            .order_by(desc(File.uploaded_at), desc(File.id))
        )
        result = await self.db.execute(query)
        return list(result.unique().scalars().all())

    async def get_user_files(self, user_id: UUID, pagination: PaginationParams) -> Dict[str, Any]:
        """Files uploaded by a user, newest first."""
        query = (
            select(File)
            .where(File.uploaded_by == user_id)
            .order_by(desc(File.uploaded_at), desc(File.id))
        )
        return await paginate(
            self.db, query, pagination, joinedload(File.uploader), joinedload(File.issue)
        )

    async def delete_file(self, file_id: UUID, user_id: UUID) -> CascadeReport:
        """Delete a file. Its uploader or the issue's creator may delete."""
        file = await self.get_file(file_id)
        if file.uploaded_by != user_id and file.issue.created_by != user_id:
            raise AttachmentPermissionError(
                "You can only delete files you uploaded or files on issues you created"
            )

        return await ReferentialIntegrityService(self.db, self.storage).delete_file(file)

    async def validate_integrity(self, issue_id: UUID) -> Dict[str, Any]:
        """Compare an issue's file records against the blobs on disk. Report only."""
        await self._get_issue(issue_id)

        result = await self.db.execute(
            select(File).where(File.issue_id == issue_id).order_by(desc(File.uploaded_at))
        )
        entries = []
        for file in result.scalars().all():
            entries.append(
                {
                    "file_id": file.id,
                    "filename": file.original_name,
                    "exists": await self.storage.exists(file.blob_path),
                    "size": file.size_bytes,
                    "uploaded_at": file.uploaded_at,
                }
            )

        missing = sum(1 for entry in entries if not entry["exists"])
        return {
            "total_files": len(entries),
            "existing_files": len(entries) - missing,
            "missing_files": missing,
            "files": entries,
        }

    async def get_stats(self) -> Dict[str, Any]:
        """Aggregate counts and sizes, overall and per MIME type."""
        overall = (
            await self.db.execute(
                select(
                    func.count(File.id),
                    func.coalesce(func.sum(File.size_bytes), 0),
                    func.coalesce(func.avg(File.size_bytes), 0),
                )
            )
        ).one()

        count = func.count(File.id).label("count")
        by_type = await self.db.execute(
            select(File.mime_type, count, func.coalesce(func.sum(File.size_bytes), 0))
            .group_by(File.mime_type)
            .order_by(desc(count), File.mime_type)
        )

        return {
            "overall": {
                "total_files": overall[0],
                "total_size": int(overall[1]),
                "avg_size": float(overall[2]),
            },
            "by_mime_type": [
                {"type": mime_type, "count": total, "total_size": int(size)}
                for mime_type, total, size in by_type.all()
            ],
        }

    async def _discard_batch(self, written: list[StoredBlob]) -> None:
        await self.db.rollback()
        for blob in written:
            try:
                await self.storage.remove(blob.path)
            except OSError as e:
                logger.error("Failed to clean up blob %s: %s", blob.path, e)
        if written:
            logger.info("Rolled back upload batch, removed %d blob(s)", len(written))

    async def _get_files_by_ids(self, file_ids: list[UUID]) -> list[File]:
        result = await self.db.execute(
            select(File)
            .options(joinedload(File.uploader))
            .where(File.id.in_(file_ids))
            .order_by(File.uploaded_at)
        )
        return list(result.unique().scalars().all())

    async def _get_issue(self, issue_id: UUID) -> Issue:
        issue = await self.db.get(Issue, issue_id)
        if issue is None:
            raise IssueNotFoundError()
        return issue

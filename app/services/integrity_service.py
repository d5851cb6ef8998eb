"""
Referential integrity between issues and their comments and file attachments.

Every delete that removes an issue, comment or file record goes through
``ReferentialIntegrityService``; neither the ORM nor the database cascades.
Record deletes for one operation run in a single transaction. Blobs are
unlinked after that transaction commits, so a blob failure can leave an
unreferenced file on disk but never a record pointing at a deleted row.
``reconcile`` sweeps up children whose issue is gone, then blobs on disk that
no file record references.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domains.file.storage import BlobStorage
from app.exceptions.base import DatabaseError
from models import Comment, File, Issue

logger = logging.getLogger(__name__)


@dataclass
class CascadeReport:
    comments_deleted: int = 0
    files_deleted: int = 0
    blobs_removed: int = 0
    blobs_missing: int = 0
    blob_failures: list[str] = field(default_factory=list)


@dataclass
class ReconcileReport:
    orphan_comments: int = 0
    orphan_files: int = 0
    blobs_removed: int = 0
    stray_blobs_removed: int = 0
    blob_failures: list[str] = field(default_factory=list)


class ReferentialIntegrityService:
    """Coordinates deletes across issues, comments, files and blobs."""

    def __init__(self, db: AsyncSession, storage: Optional[BlobStorage] = None):
        self.db = db
        self.storage = storage or BlobStorage()

    async def delete_issue(self, issue: Issue) -> CascadeReport:
        """Delete an issue, all its comments and files, then the files' blobs."""
        report = CascadeReport()

        try:
            blob_paths = (
                await self.db.scalars(select(File.blob_path).where(File.issue_id == issue.id))
            ).all()
            comments = await self.db.execute(delete(Comment).where(Comment.issue_id == issue.id))
            files = await self.db.execute(delete(File).where(File.issue_id == issue.id))
            await self.db.delete(issue)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Cascade delete of issue %s failed: %s", issue.id, e)
            raise DatabaseError(f"Failed to delete issue: {str(e)}") from e

        report.comments_deleted = comments.rowcount
        report.files_deleted = files.rowcount
        await self._remove_blobs(blob_paths, report)

        logger.info(
            "Deleted issue %s with %d comment(s) and %d file(s); %d blob(s) removed, %d failed",
            issue.id,
            report.comments_deleted,
            report.files_deleted,
            report.blobs_removed,
            len(report.blob_failures),
        )
        return report

    async def delete_comment(self, comment: Comment) -> None:
        try:
            await self.db.delete(comment)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to delete comment: {str(e)}") from e

        logger.info("Deleted comment %s from issue %s", comment.id, comment.issue_id)

    async def delete_file(self, file: File) -> CascadeReport:
        """Delete a file record, then its blob."""
        report = CascadeReport(files_deleted=1)
        blob_path = file.blob_path

        try:
            await self.db.delete(file)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to delete file: {str(e)}") from e

        await self._remove_blobs([blob_path], report)
        logger.info("Deleted file %s from issue %s", file.id, file.issue_id)
        return report

    async def reconcile(self, stray_grace: Optional[float] = None) -> ReconcileReport:
        """Delete comments and files whose issue no longer exists, then remove
        blobs older than ``stray_grace`` seconds that no file record points at.
        """
        report = ReconcileReport()
        issue_ids = select(Issue.id)

        try:
            orphan_paths = (
                await self.db.scalars(
                    select(File.blob_path).where(File.issue_id.not_in(issue_ids))
                )
            ).all()
            comments = await self.db.execute(
                delete(Comment).where(Comment.issue_id.not_in(issue_ids))
            )
            files = await self.db.execute(delete(File).where(File.issue_id.not_in(issue_ids)))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to reconcile orphans: {str(e)}") from e

        report.orphan_comments = comments.rowcount
        report.orphan_files = files.rowcount

        cascade = CascadeReport()
        await self._remove_blobs(orphan_paths, cascade)
        report.blobs_removed = cascade.blobs_removed

        if stray_grace is None:
            stray_grace = settings.stray_blob_grace_seconds
        stray = CascadeReport()
        await self._remove_blobs(await self._stray_blobs(stray_grace), stray)
        report.stray_blobs_removed = stray.blobs_removed
        report.blob_failures = cascade.blob_failures + stray.blob_failures

        if report.orphan_comments or report.orphan_files or report.stray_blobs_removed:
            logger.warning(
                "Reconciled %d orphan comment(s), %d orphan file(s) and %d stray blob(s)",
                report.orphan_comments,
                report.orphan_files,
                report.stray_blobs_removed,
            )
        return report

    async def _stray_blobs(self, grace: float) -> list[str]:
        # Blobs younger than the grace period may belong to an upload still in flight
        candidates = await self.storage.list_blobs(older_than=grace)
        if not candidates:
            return []
        try:
            blob_paths = (await self.db.scalars(select(File.blob_path))).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to list file records: {str(e)}") from e
        referenced = {Path(path).resolve() for path in blob_paths}
        return [path for path in candidates if Path(path).resolve() not in referenced]

    async def _remove_blobs(self, paths, report: CascadeReport) -> None:
        # Records are already committed away; a failed unlink only leaks disk space
        for path in paths:
            try:
                if await self.storage.remove(path):
                    report.blobs_removed += 1
                else:
                    report.blobs_missing += 1
            except OSError as e:
                logger.error("Failed to remove blob %s: %s", path, e)
                report.blob_failures.append(path)

"""
Unit tests for ReferentialIntegrityService.
"""

import os
import time
from pathlib import Path

import pytest
from sqlalchemy import delete, func, select

from app.core.config import settings
from app.domains.file.storage import BlobStorage
from app.services.integrity_service import ReferentialIntegrityService
from models import Comment, File, Issue


def age(path: Path, seconds: int) -> None:
    then = time.time() - seconds
    os.utime(path, (then, then))


class FailingStorage(BlobStorage):
    """Storage whose unlink fails for one path."""

    def __init__(self, root, failing_path):
        super().__init__(root=root)
        self.failing_path = failing_path

    async def remove(self, path: str) -> bool:
        if path == self.failing_path:
            raise PermissionError(path)
        return await super().remove(path)


async def count(db, model, issue_id) -> int:
    return await db.scalar(select(func.count(model.id)).where(model.issue_id == issue_id))


class TestDeleteIssue:
    """Test cases for the issue cascade."""

    @pytest.mark.asyncio
    async def test_cascade(
        self, test_db, test_issue, test_user, test_user_2, make_comment, make_file
    ):
        await make_comment(test_issue, test_user)
        await make_comment(test_issue, test_user_2)
        first = await make_file(test_issue, test_user, name="a.txt")
        second = await make_file(test_issue, test_user_2, name="b.txt")
        issue_id = test_issue.id

        report = await ReferentialIntegrityService(test_db).delete_issue(test_issue)

        assert report.comments_deleted == 2
        assert report.files_deleted == 2
        assert report.blobs_removed == 2
        assert report.blob_failures == []
        assert await test_db.get(Issue, issue_id) is None
        assert await count(test_db, Comment, issue_id) == 0
        assert await count(test_db, File, issue_id) == 0
        assert not Path(first.blob_path).exists()
        assert not Path(second.blob_path).exists()

    @pytest.mark.asyncio
    async def test_other_issues_untouched(
        self, test_db, make_issue, test_user, make_comment, make_file
    ):
        doomed = await make_issue(test_user, title="Doomed")
        kept = await make_issue(test_user, title="Kept")
        await make_comment(kept, test_user)
        kept_file = await make_file(kept, test_user)

        await ReferentialIntegrityService(test_db).delete_issue(doomed)

        assert await count(test_db, Comment, kept.id) == 1
        assert await count(test_db, File, kept.id) == 1
        assert Path(kept_file.blob_path).exists()

    @pytest.mark.asyncio
    async def test_missing_blob_is_counted(self, test_db, test_issue, test_user, make_file):
        file = await make_file(test_issue, test_user)
        Path(file.blob_path).unlink()

        report = await ReferentialIntegrityService(test_db).delete_issue(test_issue)

        assert report.files_deleted == 1
        assert report.blobs_removed == 0
        assert report.blobs_missing == 1

    @pytest.mark.asyncio
    async def test_blob_failure_does_not_abort(
        self, test_db, test_issue, test_user, make_file, upload_dir
    ):
        stuck = await make_file(test_issue, test_user, name="stuck.txt")
        other = await make_file(test_issue, test_user, name="other.txt")
        storage = FailingStorage(str(upload_dir), stuck.blob_path)
        issue_id = test_issue.id

        report = await ReferentialIntegrityService(test_db, storage).delete_issue(test_issue)

        assert report.blob_failures == [stuck.blob_path]
        assert report.blobs_removed == 1
        assert not Path(other.blob_path).exists()
        assert await test_db.get(Issue, issue_id) is None
        assert await count(test_db, File, issue_id) == 0


class TestDeleteChildren:
    """Test cases for single comment and file deletes."""

    @pytest.mark.asyncio
    async def test_delete_file(self, test_db, test_issue, test_user, make_file):
        file = await make_file(test_issue, test_user)

        report = await ReferentialIntegrityService(test_db).delete_file(file)

        assert report.files_deleted == 1
        assert report.blobs_removed == 1
        assert await count(test_db, File, test_issue.id) == 0
        assert not Path(file.blob_path).exists()

    @pytest.mark.asyncio
    async def test_delete_comment(self, test_db, test_issue, test_user, make_comment):
        comment = await make_comment(test_issue, test_user)

        await ReferentialIntegrityService(test_db).delete_comment(comment)

        assert await count(test_db, Comment, test_issue.id) == 0


class TestReconcile:
    """Test cases for orphan cleanup."""

    @pytest.mark.asyncio
    async def test_removes_orphans(
        self, test_db, make_issue, test_user, make_comment, make_file
    ):
        orphaned = await make_issue(test_user, title="Orphaned")
        healthy = await make_issue(test_user, title="Healthy")
        await make_comment(orphaned, test_user)
        orphan_file = await make_file(orphaned, test_user)
        await make_comment(healthy, test_user)
        # Remove the parent behind the coordinator's back
        await test_db.execute(delete(Issue).where(Issue.id == orphaned.id))
        await test_db.commit()

        report = await ReferentialIntegrityService(test_db).reconcile()

        assert report.orphan_comments == 1
        assert report.orphan_files == 1
        assert report.blobs_removed == 1
        assert not Path(orphan_file.blob_path).exists()
        assert await count(test_db, Comment, healthy.id) == 1

    @pytest.mark.asyncio
    async def test_nothing_to_do(self, test_db, test_issue, test_user, make_comment):
        await make_comment(test_issue, test_user)

        report = await ReferentialIntegrityService(test_db).reconcile()

        assert report.orphan_comments == 0
        assert report.orphan_files == 0

    @pytest.mark.asyncio
    async def test_sweeps_unreferenced_blobs(
        self, test_db, test_issue, test_user, make_file, upload_dir
    ):
        """Old blobs with no file record go; referenced and recent ones stay."""
        kept = await make_file(test_issue, test_user)
        stray = upload_dir / "left_behind.txt"
        stray.write_bytes(b"orphaned upload")
        recent = upload_dir / "in_flight.txt"
        recent.write_bytes(b"still uploading")
        age(Path(kept.blob_path), 7200)
        age(stray, 7200)

        report = await ReferentialIntegrityService(test_db).reconcile(stray_grace=3600)

        assert report.stray_blobs_removed == 1
        assert not stray.exists()
        assert recent.exists()
        assert Path(kept.blob_path).exists()

    @pytest.mark.asyncio
    async def test_stray_sweep_uses_configured_grace(self, test_db, upload_dir, monkeypatch):
        monkeypatch.setattr(settings, "stray_blob_grace_seconds", 60)
        upload_dir.mkdir(parents=True, exist_ok=True)
        stray = upload_dir / "old.bin"
        stray.write_bytes(b"x")
        age(stray, 120)

        report = await ReferentialIntegrityService(test_db).reconcile()

        assert report.stray_blobs_removed == 1
        assert not stray.exists()

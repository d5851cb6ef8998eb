"""File attachment API controller with FastAPI endpoints."""

from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, UploadFile
from fastapi import File as FormFile
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db
from app.domains.file.service import FileService
from app.schemas.base import ResponseSchema
from app.schemas.file import FileIntegrityReport, FileResponse, FileStatsResponse
from app.shared.pagination import PaginationParams, pagination_meta
from models.user import User

router = APIRouter(prefix="/api/files", tags=["files"])


def content_disposition(filename: str) -> str:
    """``attachment`` disposition header that survives non-ASCII names."""
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    if escaped.isascii():
        return f'attachment; filename="{escaped}"'
    return f"attachment; filename*=utf-8''{quote(filename)}"


@router.get("/my-files", response_model=ResponseSchema)
async def get_my_files(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Files uploaded by the authenticated user."""
    service = FileService(db)
    result = await service.get_user_files(current_user.id, PaginationParams(page=page, limit=limit))

    return ResponseSchema(
        message="Your files retrieved successfully",
        data={
            "files": [
                FileResponse.from_file(file, include_issue=True).to_json()
                for file in result["items"]
            ]
        },
        pagination=pagination_meta(result),
    )


@router.get("/stats", response_model=ResponseSchema)
async def get_file_stats(
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Counts and sizes across all stored files."""
    service = FileService(db)
    stats = await service.get_stats()

    return ResponseSchema(
        message="File statistics retrieved successfully",
        data=FileStatsResponse.model_validate(stats).to_json(),
    )


@router.post("/issue/{issue_id}/upload", response_model=ResponseSchema, status_code=201)
async def upload_files(
    issue_id: UUID = Path(..., description="Issue ID"),
    files: list[UploadFile] = FormFile(..., description="Up to 5 files"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Attach files to an issue. The whole batch is rejected if any file is."""
    service = FileService(db)
    stored = await service.upload_files(issue_id, files, current_user.id)

    return ResponseSchema(
        message=f"{len(stored)} file(s) uploaded successfully",
        data={"files": [FileResponse.from_file(file).to_json() for file in stored]},
    )


@router.get("/issue/{issue_id}", response_model=ResponseSchema)
async def get_files_for_issue(
    issue_id: UUID = Path(..., description="Issue ID"),
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Files attached to an issue, newest first."""
    service = FileService(db)
    files = await service.get_files_for_issue(issue_id)

    return ResponseSchema(
        message="Files retrieved successfully",
        data={"files": [FileResponse.from_file(file).to_json() for file in files]},
    )


@router.get("/{issue_id}/validate", response_model=ResponseSchema)
async def validate_file_integrity(
    issue_id: UUID = Path(..., description="Issue ID"),
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Report which of an issue's files are present on disk."""
    service = FileService(db)
    report = await service.validate_integrity(issue_id)

    return ResponseSchema(
        message="File integrity check completed",
        data=FileIntegrityReport.model_validate(report).to_json(),
    )


@router.get("/{file_id}/download")
async def download_file(
    file_id: UUID = Path(..., description="File ID"),
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Stream a file's contents as an attachment."""
    service = FileService(db)
    file = await service.get_download(file_id)

    return StreamingResponse(
        service.storage.iter_chunks(file.blob_path),
        media_type=file.mime_type,
        headers={
            "Content-Disposition": content_disposition(file.original_name),
            "Content-Length": str(file.size_bytes),
        },
    )


@router.get("/{file_id}", response_model=ResponseSchema)
async def get_file(
    file_id: UUID = Path(..., description="File ID"),
    _current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """File metadata with uploader and issue title."""
    service = FileService(db)
    file = await service.get_file(file_id)

    return ResponseSchema(
        message="File information retrieved successfully",
        data={"file": FileResponse.from_file(file, include_issue=True).to_json()},
    )


@router.delete("/{file_id}", response_model=ResponseSchema)
async def delete_file(
    file_id: UUID = Path(..., description="File ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a file record and its blob."""
    service = FileService(db)
    await service.delete_file(file_id, current_user.id)

    return ResponseSchema(message="File deleted successfully")

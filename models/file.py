"""
File model for file attachments.
"""

import os

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel, utcnow


class File(BaseModel):
    """
    Represents a file attachment entity in the application.

    The blob itself lives on disk at ``blob_path``; each record owns a
    distinct path.
    """

    __tablename__ = "files"

    stored_name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    size_bytes = Column(BigInteger, nullable=False, default=0)
    blob_path = Column(String(500), nullable=False, unique=True)
    issue_id = Column(UUID(), ForeignKey("issues.id"), nullable=False)
    uploaded_by = Column(UUID(), ForeignKey("users.id"), nullable=False)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    uploader = relationship("User", foreign_keys=[uploaded_by], lazy="raise")
    issue = relationship("Issue", foreign_keys=[issue_id], lazy="raise")

    __table_args__ = (
        CheckConstraint("size_bytes >= 0", name="ck_files_size_non_negative"),
        Index("ix_files_issue_id_uploaded_at", "issue_id", "uploaded_at"),
        Index("ix_files_uploaded_by", "uploaded_by"),
    )

    @property
    def extension(self) -> str:
        return os.path.splitext(self.original_name)[1].lower()

    @property
    def size_formatted(self) -> str:
        return format_size(self.size_bytes or 0)


def format_size(size: int) -> str:
    """Human-readable byte count, e.g. ``1536 -> '1.5 KB'``."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"

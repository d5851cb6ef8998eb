"""
Issue model: the parent record for comments and file attachments.

An issue's comments and files are the rows in ``comments`` and ``files`` whose
``issue_id`` points at it. Related rows are never cascaded by the ORM or the
database; ``app.services.integrity_service`` owns that lifecycle.
"""

from sqlalchemy import Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel

ISSUE_STATUSES = ("pending", "complete")
ISSUE_PRIORITIES = ("low", "medium", "high")


class Issue(BaseModel):
    __tablename__ = "issues"

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, complete
    priority = Column(String(10), nullable=False, default="medium")  # low, medium, high
    assigned_to = Column(UUID(), ForeignKey("users.id"), nullable=True)
    created_by = Column(UUID(), ForeignKey("users.id"), nullable=False)

    # Loaded explicitly with joinedload() by the services
    creator = relationship("User", foreign_keys=[created_by], lazy="raise")
    assignee = relationship("User", foreign_keys=[assigned_to], lazy="raise")

    __table_args__ = (
        Index("ix_issues_status", "status"),
        Index("ix_issues_priority", "priority"),
        Index("ix_issues_created_by", "created_by"),
        Index("ix_issues_assigned_to", "assigned_to"),
        Index("ix_issues_created_at", "created_at"),
    )

    def can_edit(self, user_id) -> bool:
        """Creator and assignee may edit, change status and upload."""
        return user_id == self.created_by or (
            self.assigned_to is not None and user_id == self.assigned_to
        )

    def __repr__(self) -> str:
        return f"<Issue(id={self.id}, title='{self.title}', status='{self.status}')>"

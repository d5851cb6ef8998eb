"""
Comment model for discussion threaded under an issue.
"""

from sqlalchemy import Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class Comment(BaseModel):
    """
    Represents a comment entity in the application.
    """

    __tablename__ = "comments"

    content = Column(String(1000), nullable=False)
    issue_id = Column(UUID(), ForeignKey("issues.id"), nullable=False)
    user_id = Column(UUID(), ForeignKey("users.id"), nullable=False)

    # Relationships
    author = relationship("User", foreign_keys=[user_id], lazy="raise")
    issue = relationship("Issue", foreign_keys=[issue_id], lazy="raise")

    __table_args__ = (
        Index("ix_comments_issue_id_created_at", "issue_id", "created_at"),
        Index("ix_comments_user_id", "user_id"),
    )

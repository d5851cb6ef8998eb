"""
Models package initialization.
"""

from .base import Base, BaseModel
from .comment import Comment
from .file import File
from .issue import ISSUE_PRIORITIES, ISSUE_STATUSES, Issue
from .user import User

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "Issue",
    "Comment",
    "File",
    "ISSUE_STATUSES",
    "ISSUE_PRIORITIES",
]

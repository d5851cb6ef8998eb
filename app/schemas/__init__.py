# ruff: noqa: F403, F401
"""Schemas package initialization."""

# Import all schemas to ensure they're registered
from .base import *
from .comment import *
from .file import *
from .issue import *
from .summary import *
from .user import *

# Rebuild models after all schemas are loaded
IssueDetailResponse.model_rebuild()

"""
Declarative base and the columns shared by every issue log table.

Primary keys are UUIDs: native on PostgreSQL, 36-character strings on SQLite
so the test suite and local development run against the same models.
Timestamps are timezone-aware and set in Python rather than by the database.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, TypeDecorator
from sqlalchemy.dialects.postgresql import UUID as PostgreSQLUUID
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UUID(TypeDecorator):
    """UUID column portable between PostgreSQL and SQLite.

    Values always come back as ``uuid.UUID`` whatever the backend stores.
    """

    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgreSQLUUID())
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name == "postgresql":
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class BaseModel(Base):
    """
    Abstract parent of users, issues, comments and files.

    :ivar id: Random UUID assigned on insert.
    :type id: UUID
    :ivar created_at: Insert time, UTC.
    :type created_at: datetime
    :ivar updated_at: Last write time, UTC; refreshed on every update.
    :type updated_at: datetime
    """

    __abstract__ = True

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

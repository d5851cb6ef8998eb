"""
Provides the User model for the application's database schema.

Users are created at registration and mutated by profile updates and password
changes. No exposed operation deletes them. Emails are stored lower-cased so
the unique constraint enforces case-insensitive uniqueness.

Attributes
----------
email : sqlalchemy.Column
    Lower-cased email address, unique across users.
password_hash : sqlalchemy.Column
    bcrypt hash of the user's password. Never serialized.
first_name, last_name : sqlalchemy.Column
    Display names, at most 50 characters each.
"""

from sqlalchemy import Column, String

from .base import BaseModel


class User(BaseModel):
    """
    Represents a user entity in the application.

    :ivar email: Email address of the user, unique and lower-cased.
    :type email: str
    :ivar password_hash: One-way hash of the password.
    :type password_hash: str
    :ivar first_name: Given name.
    :type first_name: str
    :ivar last_name: Family name.
    :type last_name: str
    """

    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"

"""Create issue log tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from models.base import UUID

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=50), nullable=False),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # No ON DELETE rules: issue children are removed by the integrity service
    op.create_table(
        'issues',
        sa.Column('id', UUID(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('priority', sa.String(length=10), nullable=False),
        sa.Column('assigned_to', UUID(), nullable=True),
        sa.Column('created_by', UUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_issues_status', 'issues', ['status'])
    op.create_index('ix_issues_priority', 'issues', ['priority'])
    op.create_index('ix_issues_created_by', 'issues', ['created_by'])
    op.create_index('ix_issues_assigned_to', 'issues', ['assigned_to'])
    op.create_index('ix_issues_created_at', 'issues', ['created_at'])

    op.create_table(
        'comments',
        sa.Column('id', UUID(), nullable=False),
        sa.Column('content', sa.String(length=1000), nullable=False),
        sa.Column('issue_id', UUID(), nullable=False),
        sa.Column('user_id', UUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['issue_id'], ['issues.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_comments_issue_id_created_at', 'comments', ['issue_id', 'created_at'])
    op.create_index('ix_comments_user_id', 'comments', ['user_id'])

    op.create_table(
        'files',
        sa.Column('id', UUID(), nullable=False),
        sa.Column('stored_name', sa.String(length=255), nullable=False),
        sa.Column('original_name', sa.String(length=255), nullable=False),
        sa.Column('mime_type', sa.String(length=100), nullable=False),
        sa.Column('size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('blob_path', sa.String(length=500), nullable=False),
        sa.Column('issue_id', UUID(), nullable=False),
        sa.Column('uploaded_by', UUID(), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('size_bytes >= 0', name='ck_files_size_non_negative'),
        sa.ForeignKeyConstraint(['issue_id'], ['issues.id']),
        sa.ForeignKeyConstraint(['uploaded_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('blob_path'),
    )
    op.create_index('ix_files_issue_id_uploaded_at', 'files', ['issue_id', 'uploaded_at'])
    op.create_index('ix_files_uploaded_by', 'files', ['uploaded_by'])


def downgrade() -> None:
    op.drop_index('ix_files_uploaded_by', table_name='files')
    op.drop_index('ix_files_issue_id_uploaded_at', table_name='files')
    op.drop_table('files')
    op.drop_index('ix_comments_user_id', table_name='comments')
    op.drop_index('ix_comments_issue_id_created_at', table_name='comments')
    op.drop_table('comments')
    op.drop_index('ix_issues_created_at', table_name='issues')
    op.drop_index('ix_issues_assigned_to', table_name='issues')
    op.drop_index('ix_issues_created_by', table_name='issues')
    op.drop_index('ix_issues_priority', table_name='issues')
    op.drop_index('ix_issues_status', table_name='issues')
    op.drop_table('issues')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

"""Initial migration

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(*values: str, name: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=20)


def upgrade() -> None:
    # Create api_keys table
    op.create_table(
        'api_keys',
        sa.Column('id', sa.Uuid(as_uuid=False), primary_key=True),
        sa.Column('key_hash', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('key_prefix', sa.String(12), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('owner', sa.String(100), nullable=False),
        sa.Column('role', _enum('admin', 'client', name='principalrole'), nullable=False, server_default='client'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
    )

    # Create client_submissions table
    op.create_table(
        'client_submissions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('client_key_id', sa.Uuid(as_uuid=False), sa.ForeignKey('api_keys.id'), nullable=False, index=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('urgency', _enum('low', 'normal', 'urgent', 'critical', name='urgency'), nullable=False, server_default='normal'),
        sa.Column('requested_due_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', _enum('pending', 'in_review', 'in_production', 'done', 'archived', name='submissionstatus'), nullable=False, server_default='pending'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('assigned_board_id', sa.Integer(), nullable=True),
        sa.Column('assigned_card_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_client_submissions_status', 'client_submissions', ['status'])

    # Create boards, lists and cards tables
    op.create_table(
        'boards',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('owner_key_id', sa.Uuid(as_uuid=False), sa.ForeignKey('api_keys.id'), nullable=False),
        sa.Column('color', sa.String(50), nullable=True),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'lists',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('board_id', sa.Integer(), sa.ForeignKey('boards.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'cards',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('list_id', sa.Integer(), sa.ForeignKey('lists.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('submission_id', sa.Integer(), sa.ForeignKey('client_submissions.id'), nullable=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('priority', sa.String(20), nullable=True),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Create attachments table
    op.create_table(
        'attachments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('parent_type', _enum('submission', 'card', name='parenttype'), nullable=False, index=True),
        sa.Column('parent_id', sa.Integer(), nullable=False, index=True),
        sa.Column('file_name', sa.String(500), nullable=False),
        sa.Column('file_url', sa.Text(), nullable=False),
        sa.Column('storage_path', sa.Text(), nullable=True),
        sa.Column('thumbnail_url', sa.Text(), nullable=True),
        sa.Column('file_type', _enum('video', 'audio', 'image', 'document', 'other', name='filetype'), nullable=False, server_default='other'),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('mime_type', sa.String(100), nullable=True),
        sa.Column('uploaded_by_key_id', sa.Uuid(as_uuid=False), nullable=True),
        sa.Column('transcription', sa.Text(), nullable=True),
        sa.Column('transcription_status', _enum('pending', 'processing', 'completed', 'failed', name='transcriptionstatus'), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Create upload_sessions and upload_chunks tables
    op.create_table(
        'upload_sessions',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('owner_key_id', sa.Uuid(as_uuid=False), nullable=False, index=True),
        sa.Column('parent_type', _enum('submission', 'card', name='parenttype'), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=False),
        sa.Column('file_name', sa.String(500), nullable=False),
        sa.Column('declared_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('chunk_size', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False, index=True),
    )

    op.create_table(
        'upload_chunks',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('session_id', sa.String(32), sa.ForeignKey('upload_sessions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('chunk_index', sa.Integer(), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('received_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('session_id', 'chunk_index', name='uq_upload_chunks_session_index'),
    )


def downgrade() -> None:
    op.drop_table('upload_chunks')
    op.drop_table('upload_sessions')
    op.drop_table('attachments')
    op.drop_table('cards')
    op.drop_table('lists')
    op.drop_table('boards')
    op.drop_index('ix_client_submissions_status', table_name='client_submissions')
    op.drop_table('client_submissions')
    op.drop_table('api_keys')

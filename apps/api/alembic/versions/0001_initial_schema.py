"""Initial schema - tenants, whitelist, members, tasks, events, documents

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

Portable column types so the same migration runs on PostgreSQL and SQLite.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        )
    return columns


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Auth & tenants
    # ==========================================================================
    op.create_table(
        'super_admins',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255)),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True)),
        *_timestamps(updated=False),
    )

    op.create_table(
        'organizations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('website', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('contact_email', sa.String(255)),
        sa.Column('shared_password_hash', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'whitelisted_emails',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column(
            'organization_id', sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('admin_notes', sa.Text()),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('added_by', sa.String(255)),
        *_timestamps(updated=False),
        sa.UniqueConstraint('email', 'organization_id', name='uq_whitelist_email_org'),
    )
    op.create_index('idx_whitelist_email', 'whitelisted_emails', ['email'])

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column(
            'organization_id', sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('birthday', sa.Date()),
        sa.Column('admin_notes', sa.Text()),
        sa.Column('profile_completed', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('legacy_notes', sa.Text()),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('login_count', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('idx_users_org', 'users', ['organization_id'])

    # ==========================================================================
    # Tasks
    # ==========================================================================
    op.create_table(
        'tasks',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'organization_id', sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('due_date', sa.DateTime(timezone=True)),
        sa.Column('priority', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        *_timestamps(),
    )
    op.create_index('idx_tasks_org_status', 'tasks', ['organization_id', 'status'])

    op.create_table(
        'task_assignments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('task_id', sa.Uuid(), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('assigned_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.Column('completion_notes', sa.Text()),
        sa.Column('admin_feedback', sa.Text()),
        sa.UniqueConstraint('task_id', 'user_id', name='uq_assignment_task_user'),
    )
    op.create_index('idx_assignments_user', 'task_assignments', ['user_id', 'status'])

    # ==========================================================================
    # Calendar
    # ==========================================================================
    op.create_table(
        'calendar_events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'organization_id', sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('location', sa.String(255)),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date()),
        sa.Column('start_time', sa.Time()),
        sa.Column('end_time', sa.Time()),
        sa.Column('is_all_day', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('event_type', sa.String(30), nullable=False),
        sa.Column('max_volunteers', sa.Integer()),
        sa.Column('video_link', sa.String(500)),
        sa.Column('meeting_id', sa.String(100)),
        sa.Column('meeting_passcode', sa.String(100)),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        *_timestamps(),
    )
    op.create_index('idx_events_org_start', 'calendar_events', ['organization_id', 'start_date'])

    op.create_table(
        'event_signups',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'event_id', sa.Uuid(),
            sa.ForeignKey('calendar_events.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_signup_event_user'),
    )

    # ==========================================================================
    # Documents
    # ==========================================================================
    op.create_table(
        'documents',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'organization_id', sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category', sa.String(30), nullable=False),
        sa.Column('visibility', sa.String(30), nullable=False),
        sa.Column('is_pinned', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('storage_key', sa.String(500), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('checksum', sa.String(64)),
        sa.Column('uploaded_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        *_timestamps(),
    )
    op.create_index('idx_documents_org', 'documents', ['organization_id', 'is_pinned'])


def downgrade() -> None:
    """Drop all tables (dependents first)."""
    op.drop_table('documents')
    op.drop_table('event_signups')
    op.drop_table('calendar_events')
    op.drop_table('task_assignments')
    op.drop_table('tasks')
    op.drop_table('users')
    op.drop_table('whitelisted_emails')
    op.drop_table('organizations')
    op.drop_table('super_admins')

"""SQLAlchemy ORM models for tenants, volunteers, tasks, events, and documents."""

import uuid
from datetime import date, datetime, time

from sqlalchemy import (
    Boolean, Date, ForeignKey, Index, Integer, String, Text, Time,
    UniqueConstraint, Uuid, func, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from volunteer_hub.db.base import Base
from volunteer_hub.db.enums import (
    DEFAULT_DOCUMENT_CATEGORY, DEFAULT_DOCUMENT_VISIBILITY, DEFAULT_EVENT_TYPE,
    DEFAULT_TASK_PRIORITY, AssignmentStatus, Role, TaskStatus,
)


# =============================================================================
# Auth & Tenant Models
# =============================================================================

class SuperAdmin(Base):
    """
    Platform operator account.

    Super admins authenticate with an individual password and are not
    members of any organization.
    """
    __tablename__ = "super_admins"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    last_login: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )


class Organization(Base):
    """
    A nonprofit tenant.

    All domain entities belong to an organization and must be scoped by
    organization_id in all queries. Organizations are deactivated, never
    deleted. Members log in with the organization's shared password.
    """
    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    website: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(Text)
    contact_email: Mapped[str | None] = mapped_column(String(255))
    shared_password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    users: Mapped[list["User"]] = relationship(
        back_populates="organization",
        cascade="all, delete-orphan",
    )
    whitelist: Mapped[list["WhitelistedEmail"]] = relationship(
        back_populates="organization",
        cascade="all, delete-orphan",
    )
    tasks: Mapped[list["Task"]] = relationship(
        back_populates="organization",
        cascade="all, delete-orphan",
    )
    events: Mapped[list["CalendarEvent"]] = relationship(
        back_populates="organization",
        cascade="all, delete-orphan",
    )
    documents: Mapped[list["Document"]] = relationship(
        back_populates="organization",
        cascade="all, delete-orphan",
    )


class WhitelistedEmail(Base):
    """
    Login gate for an organization.

    Only whitelisted, active emails may log in with the organization's
    shared password. The whitelist role decides the user type.
    """
    __tablename__ = "whitelisted_emails"
    __table_args__ = (
        UniqueConstraint("email", "organization_id", name="uq_whitelist_email_org"),
        Index("idx_whitelist_email", "email"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(50), default=Role.VOLUNTEER.value, nullable=False
    )
    admin_notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    added_by: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )

    organization: Mapped["Organization"] = relationship(back_populates="whitelist")


class User(Base):
    """
    Organization member (volunteer or nonprofit admin).

    Profile fields live in typed columns only. legacy_notes holds notes JSON
    written by older clients until `migrate-profile-notes` lifts it.
    """
    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_org", "organization_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(50), default=Role.VOLUNTEER.value, nullable=False
    )

    # Canonical profile
    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(Text)
    birthday: Mapped[date | None] = mapped_column(Date)
    admin_notes: Mapped[str | None] = mapped_column(Text)
    profile_completed: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    legacy_notes: Mapped[str | None] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    login_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    last_login: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    organization: Mapped["Organization"] = relationship(back_populates="users")
    assignments: Mapped[list["TaskAssignment"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="TaskAssignment.user_id",
    )
    signups: Mapped[list["EventSignup"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )


# =============================================================================
# Tasks
# =============================================================================

class Task(Base):
    """
    Work item created by an admin and assigned to one or more volunteers.

    status is a rollup of the assignments, never set directly by clients.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_org_status", "organization_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    due_date: Mapped[datetime | None] = mapped_column()
    priority: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_TASK_PRIORITY.value, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=TaskStatus.PENDING.value, nullable=False
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    organization: Mapped["Organization"] = relationship(back_populates="tasks")
    creator: Mapped["User | None"] = relationship(foreign_keys=[created_by])
    assignments: Mapped[list["TaskAssignment"]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskAssignment.assigned_at",
    )


class TaskAssignment(Base):
    """One volunteer's share of a task; the unit of "is this done"."""
    __tablename__ = "task_assignments"
    __table_args__ = (
        UniqueConstraint("task_id", "user_id", name="uq_assignment_task_user"),
        Index("idx_assignments_user", "user_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=AssignmentStatus.ASSIGNED.value, nullable=False
    )
    assigned_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL")
    )
    assigned_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column()
    completion_notes: Mapped[str | None] = mapped_column(Text)
    admin_feedback: Mapped[str | None] = mapped_column(Text)

    task: Mapped["Task"] = relationship(back_populates="assignments")
    user: Mapped["User"] = relationship(
        back_populates="assignments", foreign_keys=[user_id]
    )


# =============================================================================
# Calendar
# =============================================================================

class CalendarEvent(Base):
    """
    Organization calendar event with optional capacity.

    max_volunteers of None means unlimited. Video meeting details are
    stored in their own columns.
    """
    __tablename__ = "calendar_events"
    __table_args__ = (
        Index("idx_events_org_start", "organization_id", "start_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(String(255))
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date)
    start_time: Mapped[time | None] = mapped_column(Time)
    end_time: Mapped[time | None] = mapped_column(Time)
    is_all_day: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(
        String(30), default=DEFAULT_EVENT_TYPE.value, nullable=False
    )
    max_volunteers: Mapped[int | None] = mapped_column(Integer)
    video_link: Mapped[str | None] = mapped_column(String(500))
    meeting_id: Mapped[str | None] = mapped_column(String(100))
    meeting_passcode: Mapped[str | None] = mapped_column(String(100))
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    organization: Mapped["Organization"] = relationship(back_populates="events")
    signups: Mapped[list["EventSignup"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
    )


class EventSignup(Base):
    """RSVP of a user to an event (one row per user, upserted)."""
    __tablename__ = "event_signups"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_signup_event_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("calendar_events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    event: Mapped["CalendarEvent"] = relationship(back_populates="signups")
    user: Mapped["User"] = relationship(back_populates="signups")


# =============================================================================
# Documents
# =============================================================================

class Document(Base):
    """Uploaded file metadata; the blob lives in the storage backend."""
    __tablename__ = "documents"
    __table_args__ = (
        Index("idx_documents_org", "organization_id", "is_pinned"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(
        String(30), default=DEFAULT_DOCUMENT_CATEGORY.value, nullable=False
    )
    visibility: Mapped[str] = mapped_column(
        String(30), default=DEFAULT_DOCUMENT_VISIBILITY.value, nullable=False
    )
    is_pinned: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(500), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    checksum: Mapped[str | None] = mapped_column(String(64))
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    organization: Mapped["Organization"] = relationship(back_populates="documents")
    uploader: Mapped["User | None"] = relationship(foreign_keys=[uploaded_by])

"""Pydantic schemas for tasks and assignments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from volunteer_hub.db.enums import (
    DEFAULT_TASK_PRIORITY, AssignmentStatus, TaskPriority, TaskStatus,
)
from volunteer_hub.schemas.common import Pagination


class TaskCreate(BaseModel):
    """Request to create a task and assign it by email."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    due_date: datetime | None = None
    priority: TaskPriority = DEFAULT_TASK_PRIORITY
    assign_to_emails: list[str] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Request to update a task (partial). Assignments are not editable here."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    due_date: datetime | None = None
    priority: TaskPriority | None = None


class AssignmentRead(BaseModel):
    id: UUID
    user_id: UUID
    user_name: str
    user_email: str
    status: AssignmentStatus
    assigned_at: datetime
    completed_at: datetime | None = None
    completion_notes: str | None = None
    admin_feedback: str | None = None
    is_overdue: bool = False


class TaskRead(BaseModel):
    """Full task with its assignments (admin views)."""
    id: UUID
    title: str
    description: str | None
    due_date: datetime | None
    priority: TaskPriority
    status: TaskStatus
    created_by: UUID | None
    created_by_name: str | None = None
    created_at: datetime
    updated_at: datetime
    assignments: list[AssignmentRead] = Field(default_factory=list)
    assigned_count: int = 0
    completed_count: int = 0
    is_overdue: bool = False


class TaskListResponse(BaseModel):
    success: bool = True
    tasks: list[TaskRead]
    total: int


class TaskResponse(BaseModel):
    success: bool = True
    message: str | None = None
    task: TaskRead


class TaskCreateResponse(BaseModel):
    success: bool = True
    message: str = "Task created successfully"
    task: TaskRead
    assigned_to: int = Field(..., alias="assignedTo")

    model_config = {"populate_by_name": True}


class MyTaskItem(BaseModel):
    """The caller's assignment joined with its task."""
    id: UUID
    assignment_id: UUID
    title: str
    description: str | None
    due_date: datetime | None
    priority: TaskPriority
    task_status: TaskStatus
    status: AssignmentStatus
    assigned_at: datetime
    assigned_by_name: str | None = None
    completed_at: datetime | None = None
    completion_notes: str | None = None
    admin_feedback: str | None = None
    is_overdue: bool = False


class MyTaskStats(BaseModel):
    total: int = 0
    assigned: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0
    due_soon: int = 0


class MyTasksResponse(BaseModel):
    success: bool = True
    tasks: list[MyTaskItem]
    stats: MyTaskStats
    pagination: Pagination


class TaskCompleteForUser(BaseModel):
    """Admin marks one volunteer's assignment complete."""
    user_id: UUID = Field(..., alias="userId")
    completion_notes: str | None = Field(None, alias="completionNotes", max_length=5000)
    admin_feedback: str | None = Field(None, alias="adminFeedback", max_length=5000)

    model_config = {"populate_by_name": True}


class TaskStatusUpdate(BaseModel):
    """Assignee moves their own assignment."""
    status: AssignmentStatus
    completion_notes: str | None = Field(None, alias="completionNotes", max_length=5000)

    model_config = {"populate_by_name": True}


class TaskAssign(BaseModel):
    volunteer_email: str = Field(..., min_length=3, max_length=255)

"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    User roles with increasing privilege levels.

    - VOLUNTEER: Sees own tasks, events, and volunteer-visible documents
    - NONPROFIT_ADMIN: Manages one organization (volunteers, tasks, events, documents)
    - SUPER_ADMIN: Platform operator (organizations and cross-org users)
    """
    VOLUNTEER = "volunteer"
    NONPROFIT_ADMIN = "nonprofit_admin"
    SUPER_ADMIN = "super_admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    """
    Rollup status of a task, derived from its assignments.

    pending → in_progress → completed
    """
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AssignmentStatus(str, Enum):
    """Per-volunteer status of a task assignment."""
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class EventType(str, Enum):
    VOLUNTEER_EVENT = "volunteer_event"
    MEETING = "meeting"
    TRAINING = "training"
    FUNDRAISER = "fundraiser"
    OTHER = "other"


class RsvpStatus(str, Enum):
    SIGNED_UP = "signed_up"
    CANCELLED = "cancelled"


class DocumentCategory(str, Enum):
    GENERAL = "general"
    POLICY = "policy"
    TRAINING = "training"
    FORMS = "forms"
    RESOURCES = "resources"
    GUIDELINES = "guidelines"


class DocumentVisibility(str, Enum):
    """Who can see a document inside its organization."""
    ALL = "all"
    VOLUNTEERS_ONLY = "volunteers_only"
    ADMIN_ONLY = "admin_only"


class TaskSortField(str, Enum):
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    CREATED_AT = "created_at"
    TITLE = "title"


DEFAULT_TASK_PRIORITY = TaskPriority.MEDIUM
DEFAULT_EVENT_TYPE = EventType.VOLUNTEER_EVENT
DEFAULT_DOCUMENT_CATEGORY = DocumentCategory.GENERAL
DEFAULT_DOCUMENT_VISIBILITY = DocumentVisibility.ALL

# Priority order for sorting (most urgent first)
PRIORITY_RANK = {
    TaskPriority.URGENT: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


# =============================================================================
# Role Permission Helpers (avoid string literals, use enum values)
# =============================================================================

# Roles that belong to an organization (super admins do not)
ORG_ROLES = {Role.VOLUNTEER, Role.NONPROFIT_ADMIN}

# Roles that can manage an organization's volunteers, tasks, events, documents
ROLES_CAN_MANAGE_ORG = {Role.NONPROFIT_ADMIN, Role.SUPER_ADMIN}

# Roles that can see admin-only documents and event attendee lists
ROLES_CAN_SEE_ADMIN_CONTENT = {Role.NONPROFIT_ADMIN, Role.SUPER_ADMIN}

# Roles that can edit their own profile
ROLES_CAN_UPDATE_PROFILE = {Role.VOLUNTEER, Role.NONPROFIT_ADMIN}

# Visibilities shown to volunteers
VOLUNTEER_VISIBILITIES = {DocumentVisibility.ALL, DocumentVisibility.VOLUNTEERS_ONLY}

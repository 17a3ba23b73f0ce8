"""Capability table keyed by user type.

A fixed matrix: no per-resource ACL and no inheritance. The API reports it
from /auth/me and the client derives the same table offline.
"""

from dataclasses import asdict, dataclass

from volunteer_hub.db.enums import Role


@dataclass(frozen=True)
class Permissions:
    """What a user type may do in the UI."""
    is_super_admin: bool = False
    is_nonprofit_admin: bool = False
    is_volunteer: bool = False
    can_manage_organization: bool = False
    can_manage_users: bool = False
    can_assign_tasks: bool = False
    can_upload_documents: bool = False
    can_create_events: bool = False
    can_complete_own_tasks: bool = True
    can_view_dashboard: bool = True
    can_update_profile: bool = True

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


def permissions_for(user_type: str | Role | None) -> Permissions:
    """Derive capabilities from the three-way role enum."""
    value = user_type.value if isinstance(user_type, Role) else user_type
    is_super = value == Role.SUPER_ADMIN.value
    is_admin = value == Role.NONPROFIT_ADMIN.value
    is_volunteer = value == Role.VOLUNTEER.value
    manages = is_super or is_admin
    return Permissions(
        is_super_admin=is_super,
        is_nonprofit_admin=is_admin,
        is_volunteer=is_volunteer,
        can_manage_organization=manages,
        can_manage_users=manages,
        can_assign_tasks=manages,
        can_upload_documents=manages,
        can_create_events=manages,
        can_complete_own_tasks=True,
        can_view_dashboard=True,
        can_update_profile=is_admin or is_volunteer,
    )

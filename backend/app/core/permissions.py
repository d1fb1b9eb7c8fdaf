"""
Role based permissions and the caller identity passed into services.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable
from uuid import UUID

from app.db.models.user import UserRole


class Permission(str, Enum):
    # Professional permissions
    VIEW_OWN_PROFILE = "view_own_profile"
    EDIT_OWN_PROFILE = "edit_own_profile"
    ACCEPT_INTRODUCTIONS = "accept_introductions"
    VIEW_INTRODUCTION_REQUESTS = "view_introduction_requests"

    # HR partner permissions
    SEARCH_PROFESSIONALS = "search_professionals"
    VIEW_PROFESSIONAL_PROFILES = "view_professional_profiles"
    SEND_INTRODUCTION_REQUESTS = "send_introduction_requests"
    CREATE_JOB_ROLES = "create_job_roles"
    MANAGE_TEAM = "manage_team"
    VIEW_COMPANY_ANALYTICS = "view_company_analytics"

    # Admin permissions
    VERIFY_PROFESSIONALS = "verify_professionals"
    VERIFY_COMPANIES = "verify_companies"
    VIEW_ALL_USERS = "view_all_users"
    MANAGE_SUBSCRIPTIONS = "manage_subscriptions"
    ACCESS_ADMIN_DASHBOARD = "access_admin_dashboard"


ROLE_PERMISSIONS: Dict[str, FrozenSet[Permission]] = {
    UserRole.PROFESSIONAL: frozenset({
        Permission.VIEW_OWN_PROFILE,
        Permission.EDIT_OWN_PROFILE,
        Permission.ACCEPT_INTRODUCTIONS,
        Permission.VIEW_INTRODUCTION_REQUESTS,
    }),
    # MANAGE_TEAM is granted per account, not per role
    UserRole.HR_PARTNER: frozenset({
        Permission.SEARCH_PROFESSIONALS,
        Permission.VIEW_PROFESSIONAL_PROFILES,
        Permission.SEND_INTRODUCTION_REQUESTS,
        Permission.CREATE_JOB_ROLES,
        Permission.VIEW_COMPANY_ANALYTICS,
    }),
    UserRole.ADMIN: frozenset(Permission),
}


def permissions_for_role(role: str) -> FrozenSet[Permission]:
    return ROLE_PERMISSIONS.get(role, frozenset())


@dataclass(frozen=True)
class AuthenticatedActor:
    """
    The caller of a service operation.

    Built once per request from the bearer token and passed explicitly,
    so services never read session state themselves.

    Attributes:
        id: User id of the caller
        role: One of the UserRole values
        permissions: Permissions granted to the caller
    """
    id: UUID
    role: str
    permissions: FrozenSet[Permission] = field(default_factory=frozenset)

    @classmethod
    def for_role(cls, user_id: UUID, role: str, extra: Iterable[Permission] = ()) -> "AuthenticatedActor":
        return cls(id=user_id, role=role, permissions=permissions_for_role(role) | frozenset(extra))

    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions

    @property
    def is_professional(self) -> bool:
        return self.role == UserRole.PROFESSIONAL

    @property
    def is_hr_partner(self) -> bool:
        return self.role == UserRole.HR_PARTNER

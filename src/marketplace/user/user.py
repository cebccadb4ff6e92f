"""User aggregate — a person acting on the marketplace in exactly one role."""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, String

from marketplace.domain import marketplace
from marketplace.user.events import UserReactivated, UserRegistered, UserSuspended


class UserRole(Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    AGENT = "agent"
    CLIENT = "client"
    FREELANCER = "freelancer"


class UserStatus(Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


# Roles allowed to run platform-wide administrative actions
ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERADMIN})


@marketplace.aggregate
class User:
    """A registered marketplace user.

    Suspended users keep their history but are skipped by the recipient
    resolver, so they stop receiving notifications.
    """

    name: String(required=True, max_length=150)
    email: String(required=True, max_length=254, unique=True)
    role: String(choices=UserRole, required=True)
    status: String(choices=UserStatus, default=UserStatus.ACTIVE.value)
    registered_by: String(max_length=50)
    registered_at: DateTime()
    suspended_at: DateTime()

    @classmethod
    def register(cls, name, email, role, registered_by=None):
        now = datetime.now(UTC)
        user = cls(
            name=name,
            email=email.strip().lower(),
            role=role,
            status=UserStatus.ACTIVE.value,
            registered_by=registered_by,
            registered_at=now,
        )
        user.raise_(
            UserRegistered(
                user_id=str(user.id),
                name=name,
                email=user.email,
                role=role,
                registered_by=registered_by,
                registered_at=now,
            )
        )
        return user

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    @property
    def is_admin(self) -> bool:
        return UserRole(self.role) in ADMIN_ROLES

    def suspend(self, suspended_by=None):
        if not self.is_active:
            raise ValidationError({"status": ["User is already suspended"]})

        now = datetime.now(UTC)
        self.status = UserStatus.SUSPENDED.value
        self.suspended_at = now
        self.raise_(
            UserSuspended(
                user_id=str(self.id),
                name=self.name,
                email=self.email,
                role=self.role,
                suspended_by=suspended_by,
                suspended_at=now,
            )
        )

    def reactivate(self):
        if self.is_active:
            raise ValidationError({"status": ["User is already active"]})

        self.status = UserStatus.ACTIVE.value
        self.suspended_at = None
        self.raise_(UserReactivated(user_id=str(self.id), reactivated_at=datetime.now(UTC)))

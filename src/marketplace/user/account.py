"""Admin-only commands to suspend and reactivate accounts."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.audit.audit_log import AuditAction
from marketplace.audit.recorder import record_audit
from marketplace.domain import marketplace
from marketplace.user.lookup import load_actor
from marketplace.user.user import User


@marketplace.command(part_of="User")
class SuspendUser:
    user_id: Identifier(required=True)
    actor_id: Identifier(required=True)


@marketplace.command(part_of="User")
class ReactivateUser:
    user_id: Identifier(required=True)
    actor_id: Identifier(required=True)


@marketplace.command_handler(part_of=User)
class UserAccountHandler:
    def _require_admin(self, actor):
        if not actor.is_admin:
            raise ValidationError({"actor_id": ["Only admins can change account status"]})

    @handle(SuspendUser)
    def suspend_user(self, command):
        actor = load_actor(command.actor_id)
        self._require_admin(actor)

        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        previous = user.status
        user.suspend(suspended_by=str(actor.id))
        repo.add(user)

        record_audit(
            actor=actor,
            action=AuditAction.USER_SUSPENDED,
            target=user,
            previous_values={"status": previous},
            new_values={"status": user.status},
        )

    @handle(ReactivateUser)
    def reactivate_user(self, command):
        actor = load_actor(command.actor_id)
        self._require_admin(actor)

        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        previous = user.status
        user.reactivate()
        repo.add(user)

        record_audit(
            actor=actor,
            action=AuditAction.USER_REACTIVATED,
            target=user,
            previous_values={"status": previous},
            new_values={"status": user.status},
        )

"""User registration command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.audit.audit_log import AuditAction
from marketplace.audit.recorder import record_audit
from marketplace.domain import marketplace
from marketplace.user.lookup import load_actor
from marketplace.user.user import User


@marketplace.command(part_of="User")
class RegisterUser:
    name: String(required=True, max_length=150)
    email: String(required=True, max_length=254)
    role: String(required=True, max_length=20)
    registered_by: Identifier()


@marketplace.command_handler(part_of=User)
class RegisterUserHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        user = User.register(
            name=command.name,
            email=command.email,
            role=command.role,
            registered_by=command.registered_by,
        )
        current_domain.repository_for(User).add(user)

        # Self-registration is attributed to the new user
        actor = load_actor(command.registered_by) if command.registered_by else user
        record_audit(
            actor=actor,
            action=AuditAction.USER_CREATED,
            target=user,
            new_values={"name": user.name, "email": user.email, "role": user.role},
        )
        return str(user.id)

"""Project lifecycle — creation, edits, agent assignment and status transitions.

``ApplyTransition`` is the only way a project's status changes. Its handler
runs inside one unit of work: the project update, the timeline entry and
the audit record commit together or not at all, and ``ProjectStatusChanged``
is only delivered to event handlers after that commit.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.audit.audit_log import AuditAction
from marketplace.audit.recorder import record_audit
from marketplace.domain import marketplace
from marketplace.project.access import ensure, is_manager, is_owner
from marketplace.project.project import Project, ProjectStatus
from marketplace.project.timeline import ProjectTimeline
from marketplace.project.transitions import authorize_transition
from marketplace.user.lookup import load_actor
from marketplace.user.user import User, UserRole

# Audit actions more specific than a plain status change
_AUDIT_ACTION_FOR_TRANSITION = {
    "approve_project": AuditAction.PROJECT_APPROVED,
    "reject_project": AuditAction.PROJECT_REJECTED,
}

_FREELANCER_REMARK = {
    "award_bidding": "Awarded to {name}",
    "assign_freelancer": "Assigned to {name}",
}


@marketplace.command(part_of="Project")
class CreateProject:
    actor_id: Identifier(required=True)
    title: String(required=True, max_length=200)
    description: Text()
    budget: Float(min_value=0.0)
    client_id: Identifier()  # Required when an admin creates on a client's behalf


@marketplace.command(part_of="Project")
class UpdateProjectDetails:
    project_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    title: String(max_length=200)
    description: Text()
    budget: Float(min_value=0.0)


@marketplace.command(part_of="Project")
class ApplyTransition:
    """Request to move a project to ``target_status``."""

    project_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    target_status: String(required=True, max_length=30)
    remark: Text()
    freelancer_id: Identifier()


@marketplace.command(part_of="Project")
class AssignAgent:
    project_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    agent_id: Identifier(required=True)


@marketplace.command(part_of="Project")
class UnassignAgent:
    project_id: Identifier(required=True)
    actor_id: Identifier(required=True)


def _parse_status(value) -> ProjectStatus:
    try:
        return ProjectStatus(value)
    except ValueError:
        raise ValidationError({"target_status": [f"Unknown project status: {value}"]}) from None


def _load_user_with_role(user_id, role: UserRole, field_name: str) -> User:
    user = current_domain.repository_for(User).get(user_id)
    if UserRole(user.role) != role or not user.is_active:
        raise ValidationError({field_name: [f"User {user_id} is not an active {role.value}"]})
    return user


@marketplace.command_handler(part_of=Project)
class ProjectLifecycleHandler:
    @handle(CreateProject)
    def create_project(self, command):
        actor = load_actor(command.actor_id)
        role = UserRole(actor.role)

        if role == UserRole.CLIENT:
            client_id = str(actor.id)
        elif actor.is_admin:
            if not command.client_id:
                raise ValidationError({"client_id": ["Admins must name the client the project is created for"]})
            client_id = str(_load_user_with_role(command.client_id, UserRole.CLIENT, "client_id").id)
        else:
            raise ValidationError({"actor_id": ["Only clients and admins can create projects"]})

        project = Project.create(
            title=command.title,
            client_id=client_id,
            created_by=str(actor.id),
            description=command.description,
            budget=command.budget,
        )
        current_domain.repository_for(Project).add(project)

        record_audit(
            actor=actor,
            action=AuditAction.PROJECT_CREATED,
            target=project,
            new_values={"title": project.title, "status": project.status, "client_id": client_id},
        )
        return str(project.id)

    @handle(UpdateProjectDetails)
    def update_project_details(self, command):
        actor = load_actor(command.actor_id)
        repo = current_domain.repository_for(Project)
        project = repo.get(command.project_id)
        ensure(is_owner(project, actor) or is_manager(project, actor), "You do not have permission to edit this project")

        previous = {"title": project.title, "description": project.description, "budget": project.budget}
        project.update_details(
            updated_by=str(actor.id),
            title=command.title,
            description=command.description,
            budget=command.budget,
        )
        repo.add(project)

        record_audit(
            actor=actor,
            action=AuditAction.PROJECT_UPDATED,
            target=project,
            previous_values=previous,
            new_values={"title": project.title, "description": project.description, "budget": project.budget},
        )

    @handle(ApplyTransition)
    def apply_transition(self, command):
        actor = load_actor(command.actor_id)
        project_repo = current_domain.repository_for(Project)
        project = project_repo.get(command.project_id)

        rule = authorize_transition(project, actor, _parse_status(command.target_status))

        remark = (command.remark or "").strip() or None
        freelancer_id = None
        if rule.requires_freelancer and command.freelancer_id:
            freelancer = _load_user_with_role(command.freelancer_id, UserRole.FREELANCER, "freelancer_id")
            freelancer_id = str(freelancer.id)
            assignment_note = _FREELANCER_REMARK[rule.action].format(name=freelancer.name)
            remark = f"{assignment_note}. {remark}" if remark else assignment_note

        previous_values = {
            "status": project.status,
            "assigned_freelancer_id": project.assigned_freelancer_id,
            "is_open_for_bidding": project.is_open_for_bidding,
        }

        entry = ProjectTimeline.record(project, actor, rule, remark=remark)
        project.apply_transition(
            rule,
            actor,
            timeline_entry_id=entry.id,
            remark=remark,
            freelancer_id=freelancer_id,
        )

        project_repo.add(project)
        current_domain.repository_for(ProjectTimeline).add(entry)

        record_audit(
            actor=actor,
            action=_AUDIT_ACTION_FOR_TRANSITION.get(rule.action, AuditAction.PROJECT_STATUS_CHANGED),
            target=project,
            previous_values=previous_values,
            new_values={
                "status": project.status,
                "assigned_freelancer_id": project.assigned_freelancer_id,
                "is_open_for_bidding": project.is_open_for_bidding,
            },
            metadata={"transition": rule.action, "remark": remark, "timeline_entry_id": str(entry.id)},
        )
        return str(entry.id)

    @handle(AssignAgent)
    def assign_agent(self, command):
        actor = load_actor(command.actor_id)
        ensure(actor.is_admin, "Only admins can assign agents")

        agent = _load_user_with_role(command.agent_id, UserRole.AGENT, "agent_id")
        repo = current_domain.repository_for(Project)
        project = repo.get(command.project_id)

        previous_agent = project.assigned_agent_id
        project.assign_agent(str(agent.id), assigned_by=str(actor.id))
        repo.add(project)

        record_audit(
            actor=actor,
            action=AuditAction.AGENT_ASSIGNED,
            target=project,
            previous_values={"assigned_agent_id": previous_agent},
            new_values={"assigned_agent_id": str(agent.id)},
            metadata={"agent_name": agent.name},
        )

    @handle(UnassignAgent)
    def unassign_agent(self, command):
        actor = load_actor(command.actor_id)
        ensure(actor.is_admin, "Only admins can unassign agents")

        repo = current_domain.repository_for(Project)
        project = repo.get(command.project_id)

        previous_agent = project.assigned_agent_id
        project.unassign_agent(unassigned_by=str(actor.id))
        repo.add(project)

        record_audit(
            actor=actor,
            action=AuditAction.AGENT_UNASSIGNED,
            target=project,
            previous_values={"assigned_agent_id": previous_agent},
            new_values={"assigned_agent_id": None},
        )

"""Milestone commands: add, edit, complete and move through payment states."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.audit.audit_log import AuditAction
from marketplace.audit.recorder import record_audit
from marketplace.domain import marketplace
from marketplace.project.access import ensure, is_assigned_freelancer, is_manager, is_owner
from marketplace.project.project import PaymentStatus, Project
from marketplace.user.lookup import load_actor


@marketplace.command(part_of="Project")
class AddMilestone:
    project_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    title: String(required=True, max_length=200)
    amount: Float(required=True, min_value=0.0)
    description: Text()
    due_date: DateTime()


@marketplace.command(part_of="Project")
class UpdateMilestone:
    project_id: Identifier(required=True)
    milestone_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    title: String(max_length=200)
    amount: Float(min_value=0.0)
    description: Text()
    due_date: DateTime()


@marketplace.command(part_of="Project")
class CompleteMilestone:
    project_id: Identifier(required=True)
    milestone_id: Identifier(required=True)
    actor_id: Identifier(required=True)


@marketplace.command(part_of="Project")
class ChangeMilestonePaymentStatus:
    project_id: Identifier(required=True)
    milestone_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    payment_status: String(required=True, max_length=30)


@marketplace.command_handler(part_of=Project)
class MilestoneHandler:
    @handle(AddMilestone)
    def add_milestone(self, command):
        actor = load_actor(command.actor_id)
        repo = current_domain.repository_for(Project)
        project = repo.get(command.project_id)
        ensure(
            is_owner(project, actor) or is_manager(project, actor),
            "You do not have permission to add milestones to this project",
        )

        milestone = project.add_milestone(
            title=command.title,
            amount=command.amount,
            created_by=str(actor.id),
            description=command.description,
            due_date=command.due_date,
        )
        repo.add(project)

        record_audit(
            actor=actor,
            action=AuditAction.MILESTONE_CREATED,
            target=project,
            new_values={"milestone_id": str(milestone.id), "title": milestone.title, "amount": milestone.amount},
        )
        return str(milestone.id)

    @handle(UpdateMilestone)
    def update_milestone(self, command):
        actor = load_actor(command.actor_id)
        repo = current_domain.repository_for(Project)
        project = repo.get(command.project_id)
        ensure(
            is_owner(project, actor) or is_manager(project, actor),
            "You do not have permission to edit milestones on this project",
        )

        changes = project.update_milestone(
            command.milestone_id,
            updated_by=str(actor.id),
            title=command.title,
            description=command.description,
            amount=command.amount,
            due_date=command.due_date,
        )
        if not changes:
            return

        repo.add(project)
        record_audit(
            actor=actor,
            action=AuditAction.MILESTONE_UPDATED,
            target=project,
            previous_values={field: values[0] for field, values in changes.items()},
            new_values={field: values[1] for field, values in changes.items()},
            metadata={"milestone_id": str(command.milestone_id)},
        )

    @handle(CompleteMilestone)
    def complete_milestone(self, command):
        actor = load_actor(command.actor_id)
        repo = current_domain.repository_for(Project)
        project = repo.get(command.project_id)
        ensure(
            is_owner(project, actor) or is_manager(project, actor),
            "You do not have permission to complete milestones on this project",
        )

        project.complete_milestone(command.milestone_id, completed_by=str(actor.id))
        repo.add(project)

        record_audit(
            actor=actor,
            action=AuditAction.MILESTONE_COMPLETED,
            target=project,
            new_values={"milestone_id": str(command.milestone_id), "status": "completed"},
        )

    @handle(ChangeMilestonePaymentStatus)
    def change_payment_status(self, command):
        try:
            new_status = PaymentStatus(command.payment_status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status: {command.payment_status}"]}) from None

        actor = load_actor(command.actor_id)
        repo = current_domain.repository_for(Project)
        project = repo.get(command.project_id)

        # The working freelancer may ask to be paid; everything else is back office
        if new_status == PaymentStatus.PAYMENT_REQUESTED:
            ensure(
                is_assigned_freelancer(project, actor) or is_manager(project, actor),
                "Only the assigned freelancer or a project manager can request payment",
            )
        else:
            ensure(actor.is_admin, "Only admins can move milestone payments forward")

        milestone = project.get_milestone(command.milestone_id)
        previous = milestone.payment_status
        project.change_milestone_payment_status(command.milestone_id, new_status, changed_by=str(actor.id))
        repo.add(project)

        record_audit(
            actor=actor,
            action=AuditAction.MILESTONE_PAID if new_status == PaymentStatus.PAID else AuditAction.PAYMENT_STATUS_CHANGED,
            target=project,
            previous_values={"payment_status": previous},
            new_values={"payment_status": new_status.value},
            metadata={"milestone_id": str(command.milestone_id), "amount": milestone.amount},
        )

"""ActivityLog — project-scoped activity feed shown to clients and admins.

A projection over project and bidding events. Row ids are derived from the
event identity so a redelivered event does not add a second row.
"""

from uuid import NAMESPACE_URL, uuid5

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.bidding.bidding import Bidding
from marketplace.bidding.events import BiddingAccepted, BiddingDeclined, BiddingSubmitted
from marketplace.domain import marketplace
from marketplace.project.events import (
    AgentAssigned,
    MilestoneCompleted,
    MilestoneCreated,
    MilestonePaymentStatusChanged,
    ProjectCreated,
    ProjectStatusChanged,
)
from marketplace.project.project import Project
from marketplace.user.lookup import display_name

# Transitions whose feed entries deserve more attention than a plain change
_HIGH_SEVERITY_ACTIONS = {"approve_project", "reject_project", "hold_project", "cancel_project"}


@marketplace.projection
class ActivityLog:
    activity_id = Identifier(identifier=True, required=True)
    project_id = Identifier(required=True)
    user_id = Identifier(required=True)
    activity_type = String(required=True, max_length=50)
    title = String(required=True, max_length=200)
    description = Text()
    severity = String(default="low", max_length=20)
    tags = String(max_length=200)  # Comma-separated
    visible_to_client = Boolean(default=True)
    visible_to_admin = Boolean(default=True)
    created_at = DateTime()


def _project_title(project_id) -> str:
    try:
        return current_domain.repository_for(Project).get(project_id).title
    except ObjectNotFoundError:
        return "Unknown Project"


def _record(source, occurred_at, **fields):
    activity_id = str(uuid5(NAMESPACE_URL, f"{source}:{occurred_at.isoformat()}"))
    repo = current_domain.repository_for(ActivityLog)
    try:
        repo.get(activity_id)
        return
    except ObjectNotFoundError:
        pass
    repo.add(ActivityLog(activity_id=activity_id, created_at=occurred_at, **fields))


@marketplace.projector(projector_for=ActivityLog, aggregates=[Project, Bidding])
class ActivityLogProjector:
    @on(ProjectCreated)
    def on_project_created(self, event):
        _record(
            f"project_created:{event.project_id}",
            event.created_at,
            project_id=event.project_id,
            user_id=event.created_by,
            activity_type="project_created",
            title="Project Created",
            description=f'Project "{event.title}" was created by {display_name(event.created_by)}',
            severity="medium",
            tags="project,created",
        )

    @on(ProjectStatusChanged)
    def on_project_status_changed(self, event):
        description = (
            f'Project "{event.title}" status changed from "{event.previous_status}" '
            f'to "{event.new_status}" by {display_name(event.actor_id)}'
        )
        if event.remark:
            description += f". Reason: {event.remark}"

        _record(
            f"status_changed:{event.timeline_entry_id}",
            event.changed_at,
            project_id=event.project_id,
            user_id=event.actor_id,
            activity_type="project_status_changed",
            title=event.action.replace("_", " ").title(),
            description=description,
            severity="high" if event.action in _HIGH_SEVERITY_ACTIONS else "medium",
            tags=f"project,status,{event.new_status}",
        )

    @on(AgentAssigned)
    def on_agent_assigned(self, event):
        _record(
            f"agent_assigned:{event.project_id}:{event.agent_id}",
            event.assigned_at,
            project_id=event.project_id,
            user_id=event.assigned_by,
            activity_type="agent_assigned",
            title="Agent Assigned",
            description=f'{display_name(event.agent_id)} now manages project "{event.title}"',
            tags="project,agent",
            visible_to_client=False,
        )

    @on(MilestoneCreated)
    def on_milestone_created(self, event):
        _record(
            f"milestone_created:{event.milestone_id}",
            event.created_at,
            project_id=event.project_id,
            user_id=event.created_by,
            activity_type="milestone_created",
            title="Milestone Created",
            description=f'Milestone "{event.title}" (${event.amount:,.2f}) was added',
            severity="medium",
            tags="milestone,created",
        )

    @on(MilestoneCompleted)
    def on_milestone_completed(self, event):
        _record(
            f"milestone_completed:{event.milestone_id}",
            event.completed_at,
            project_id=event.project_id,
            user_id=event.completed_by,
            activity_type="milestone_completed",
            title="Milestone Completed",
            description=f'Milestone "{event.title}" was completed by {display_name(event.completed_by)}',
            severity="medium",
            tags="milestone,completed",
        )

    @on(MilestonePaymentStatusChanged)
    def on_milestone_payment_status_changed(self, event):
        _record(
            f"milestone_payment:{event.milestone_id}:{event.new_payment_status}",
            event.changed_at,
            project_id=event.project_id,
            user_id=event.changed_by,
            activity_type="payment_status_changed",
            title="Milestone Payment Updated",
            description=(
                f'Payment for milestone "{event.title}" moved from '
                f"{event.previous_payment_status} to {event.new_payment_status}"
            ),
            severity="high" if event.new_payment_status == "paid" else "medium",
            tags=f"milestone,payment,{event.new_payment_status}",
        )

    @on(BiddingSubmitted)
    def on_bidding_submitted(self, event):
        _record(
            f"bidding_submitted:{event.bidding_id}",
            event.submitted_at,
            project_id=event.project_id,
            user_id=event.freelancer_id,
            activity_type="bid_submitted",
            title="Bid Submitted",
            description=(
                f"{display_name(event.freelancer_id)} bid ${event.amount:,.2f} "
                f'on project "{_project_title(event.project_id)}"'
            ),
            tags="bid,submitted",
            visible_to_client=False,
        )

    @on(BiddingAccepted)
    def on_bidding_accepted(self, event):
        _record(
            f"bidding_accepted:{event.bidding_id}",
            event.accepted_at,
            project_id=event.project_id,
            user_id=event.accepted_by,
            activity_type="bid_accepted",
            title="Bid Accepted",
            description=(
                f"The bid from {display_name(event.freelancer_id)} on project "
                f'"{_project_title(event.project_id)}" was accepted'
            ),
            severity="medium",
            tags="bid,accepted",
        )

    @on(BiddingDeclined)
    def on_bidding_declined(self, event):
        _record(
            f"bidding_declined:{event.bidding_id}",
            event.declined_at,
            project_id=event.project_id,
            user_id=event.declined_by,
            activity_type="bid_declined",
            title="Bid Declined",
            description=(
                f"The bid from {display_name(event.freelancer_id)} on project "
                f'"{_project_title(event.project_id)}" was declined'
            ),
            tags="bid,declined",
            visible_to_client=False,
        )

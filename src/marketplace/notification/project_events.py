"""Inbound event handler — Notifications react to Project events.

Each project event maps to one or more routing event keys. Dedup keys are
derived from the event's own identity so a redelivered event never
duplicates notifications.
"""

import structlog
from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.notification.delivery import broadcast_to_role
from marketplace.notification.dispatcher import dispatch, event_identity
from marketplace.notification.notification import Notification
from marketplace.notification.routing import EventKey
from marketplace.project.events import (
    AgentAssigned,
    AgentUnassigned,
    MilestoneCompleted,
    MilestoneCreated,
    MilestonePaymentStatusChanged,
    MilestoneUpdated,
    ProjectCreated,
    ProjectDetailsUpdated,
    ProjectStatusChanged,
)
from marketplace.project.project import ProjectStatus
from marketplace.user.user import UserRole

logger = structlog.get_logger(__name__)

_FREELANCER_ASSIGNING_ACTIONS = {"award_bidding", "assign_freelancer"}


def _project_payload(event) -> dict:
    return {
        "project_id": str(event.project_id),
        "project_title": event.title,
        "client_id": str(event.client_id),
    }


@marketplace.event_handler(part_of=Notification, stream_category="marketplace::project")
class ProjectEventsHandler:
    @handle(ProjectCreated)
    def on_project_created(self, event: ProjectCreated) -> None:
        dispatch(
            EventKey.PROJECT_CREATED,
            {**_project_payload(event), "status": event.status, "created_by": str(event.created_by)},
            source_event_id=event_identity("project_created", event.project_id),
        )

    @handle(ProjectDetailsUpdated)
    def on_project_details_updated(self, event: ProjectDetailsUpdated) -> None:
        dispatch(
            EventKey.PROJECT_UPDATED,
            {**_project_payload(event), "updated_by": str(event.updated_by)},
            source_event_id=event_identity("project_updated", event.project_id, event.updated_at),
        )

    @handle(ProjectStatusChanged)
    def on_project_status_changed(self, event: ProjectStatusChanged) -> None:
        source = event_identity("status_changed", event.timeline_entry_id)
        payload = {
            **_project_payload(event),
            "old_status": event.previous_status,
            "new_status": event.new_status,
            "action": event.action,
            "remark": event.remark,
            "changed_by": str(event.actor_id),
        }
        dispatch(EventKey.PROJECT_STATUS_CHANGED, payload, source_event_id=source)

        if event.new_status == ProjectStatus.PENDING_REVIEW.value:
            dispatch(EventKey.PROJECT_REVIEW_PENDING, payload, source_event_id=source)

        if event.action in _FREELANCER_ASSIGNING_ACTIONS and event.assigned_freelancer_id:
            assigned = {**payload, "freelancer_id": str(event.assigned_freelancer_id)}
            dispatch(EventKey.PROJECT_ASSIGNED, assigned, source_event_id=source)
            dispatch(EventKey.FREELANCER_ASSIGNED, assigned, source_event_id=source)

        broadcast_to_role(
            UserRole.ADMIN.value,
            "project:status_updated",
            {
                "project_id": str(event.project_id),
                "title": event.title,
                "previous_status": event.previous_status,
                "new_status": event.new_status,
                "action": event.action,
                "changed_by": str(event.actor_id),
                "changed_at": event.changed_at.isoformat() if event.changed_at else None,
            },
        )

    @handle(AgentAssigned)
    def on_agent_assigned(self, event: AgentAssigned) -> None:
        dispatch(
            EventKey.AGENT_ASSIGNED,
            {**_project_payload(event), "agent_id": str(event.agent_id), "assigned_by": str(event.assigned_by)},
            source_event_id=event_identity("agent_assigned", event.project_id, event.agent_id, event.assigned_at),
        )

    @handle(AgentUnassigned)
    def on_agent_unassigned(self, event: AgentUnassigned) -> None:
        dispatch(
            EventKey.AGENT_UNASSIGNED,
            {**_project_payload(event), "agent_id": str(event.agent_id), "unassigned_by": str(event.unassigned_by)},
            source_event_id=event_identity("agent_unassigned", event.project_id, event.agent_id, event.unassigned_at),
        )

    @handle(MilestoneCreated)
    def on_milestone_created(self, event: MilestoneCreated) -> None:
        dispatch(
            EventKey.MILESTONE_CREATED,
            {
                "project_id": str(event.project_id),
                "milestone_id": str(event.milestone_id),
                "milestone_title": event.title,
                "amount": f"{event.amount:,.2f}",
                "created_by": str(event.created_by),
            },
            source_event_id=event_identity("milestone_created", event.milestone_id),
        )

    @handle(MilestoneUpdated)
    def on_milestone_updated(self, event: MilestoneUpdated) -> None:
        dispatch(
            EventKey.MILESTONE_UPDATED,
            {
                "project_id": str(event.project_id),
                "milestone_id": str(event.milestone_id),
                "milestone_title": event.title,
                "updated_by": str(event.updated_by),
            },
            source_event_id=event_identity("milestone_updated", event.milestone_id, event.updated_at),
        )

    @handle(MilestoneCompleted)
    def on_milestone_completed(self, event: MilestoneCompleted) -> None:
        dispatch(
            EventKey.MILESTONE_COMPLETED,
            {
                "project_id": str(event.project_id),
                "milestone_id": str(event.milestone_id),
                "milestone_title": event.title,
                "completed_by": str(event.completed_by),
            },
            source_event_id=event_identity("milestone_completed", event.milestone_id),
        )

    @handle(MilestonePaymentStatusChanged)
    def on_milestone_payment_status_changed(self, event: MilestonePaymentStatusChanged) -> None:
        payload = {
            "project_id": str(event.project_id),
            "milestone_id": str(event.milestone_id),
            "milestone_title": event.title,
            "amount": f"{event.amount:,.2f}",
            "payment_status": event.new_payment_status,
            "previous_payment_status": event.previous_payment_status,
            "changed_by": str(event.changed_by),
        }
        if event.assigned_freelancer_id:
            payload["freelancer_id"] = str(event.assigned_freelancer_id)
        else:
            logger.info(
                "No assigned freelancer for payment status change",
                project_id=str(event.project_id),
                milestone_id=str(event.milestone_id),
            )

        dispatch(
            EventKey.PAYMENT_STATUS_CHANGED,
            payload,
            source_event_id=event_identity(
                "payment_status_changed", event.milestone_id, event.new_payment_status, event.changed_at
            ),
        )

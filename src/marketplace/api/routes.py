"""FastAPI routes for the marketplace domain.

Thin adapters that translate HTTP requests into domain commands.
No business logic, just schema→command→response translation.
"""

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    ActorRequest,
    AddMilestoneRequest,
    AssignAgentRequest,
    AuditEntryResponse,
    AuditListResponse,
    CreatedResponse,
    CreateProjectRequest,
    MarkAllReadResponse,
    MarkReadRequest,
    NotificationListResponse,
    NotificationResponse,
    PaymentStatusRequest,
    PostBidRequest,
    RegisterUserRequest,
    StatusResponse,
    SubmitBiddingRequest,
    TimelineEntryResponse,
    TimelineResponse,
    TransitionRequest,
    TransitionResponse,
    UpdateMilestoneRequest,
    UpdateProjectRequest,
)
from marketplace.audit.audit_log import AuditLog
from marketplace.bidding.acceptance import accept_bid
from marketplace.bidding.review import DeclineBidding, ShortlistBidding, UnshortlistBidding
from marketplace.bidding.submission import CloseBid, PostBid, SubmitBidding, WithdrawBidding
from marketplace.notification.notification import Notification
from marketplace.notification.reading import MarkAllNotificationsRead, MarkNotificationRead
from marketplace.project.lifecycle import (
    ApplyTransition,
    AssignAgent,
    CreateProject,
    UnassignAgent,
    UpdateProjectDetails,
)
from marketplace.project.milestones import (
    AddMilestone,
    ChangeMilestonePaymentStatus,
    CompleteMilestone,
    UpdateMilestone,
)
from marketplace.project.project import Project
from marketplace.project.timeline import ProjectTimeline
from marketplace.shared.pagination import decode_cursor, next_cursor
from marketplace.user.account import ReactivateUser, SuspendUser
from marketplace.user.registration import RegisterUser

user_router = APIRouter(prefix="/users", tags=["users"])
project_router = APIRouter(prefix="/projects", tags=["projects"])
bid_router = APIRouter(tags=["bids"])
notification_router = APIRouter(prefix="/notifications", tags=["notifications"])
audit_router = APIRouter(prefix="/audit", tags=["audit"])


def _iso(value) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@user_router.post("", status_code=201, response_model=CreatedResponse)
async def register_user(body: RegisterUserRequest) -> CreatedResponse:
    command = RegisterUser(
        name=body.name,
        email=body.email,
        role=body.role,
        registered_by=body.registered_by,
    )
    user_id = current_domain.process(command, asynchronous=False)
    return CreatedResponse(id=user_id)


@user_router.put("/{user_id}/suspend", response_model=StatusResponse)
async def suspend_user(user_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(SuspendUser(user_id=user_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


@user_router.put("/{user_id}/reactivate", response_model=StatusResponse)
async def reactivate_user(user_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(ReactivateUser(user_id=user_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------
@project_router.post("", status_code=201, response_model=CreatedResponse)
async def create_project(body: CreateProjectRequest) -> CreatedResponse:
    command = CreateProject(
        actor_id=body.actor_id,
        title=body.title,
        description=body.description,
        budget=body.budget,
        client_id=body.client_id,
    )
    project_id = current_domain.process(command, asynchronous=False)
    return CreatedResponse(id=project_id)


@project_router.put("/{project_id}", response_model=StatusResponse)
async def update_project(project_id: str, body: UpdateProjectRequest) -> StatusResponse:
    command = UpdateProjectDetails(
        project_id=project_id,
        actor_id=body.actor_id,
        title=body.title,
        description=body.description,
        budget=body.budget,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@project_router.put("/{project_id}/status", response_model=TransitionResponse)
async def change_project_status(project_id: str, body: TransitionRequest) -> TransitionResponse:
    command = ApplyTransition(
        project_id=project_id,
        actor_id=body.actor_id,
        target_status=body.target_status,
        remark=body.remark,
        freelancer_id=body.freelancer_id,
    )
    entry_id = current_domain.process(command, asynchronous=False)
    return TransitionResponse(timeline_entry_id=entry_id)


@project_router.get("/{project_id}/timeline", response_model=TimelineResponse)
async def get_timeline(project_id: str) -> TimelineResponse:
    # Raises ObjectNotFoundError (404) for unknown projects
    current_domain.repository_for(Project).get(project_id)
    entries = current_domain.repository_for(ProjectTimeline).for_project(project_id)
    return TimelineResponse(
        project_id=project_id,
        entries=[
            TimelineEntryResponse(
                id=str(e.id),
                action=e.action,
                title=e.title,
                old_status=e.old_status,
                new_status=e.new_status,
                actor_id=str(e.actor_id),
                actor_role=e.actor_role,
                remark=e.remark,
                created_at=_iso(e.created_at),
            )
            for e in entries
        ],
    )


@project_router.put("/{project_id}/agent", response_model=StatusResponse)
async def assign_agent(project_id: str, body: AssignAgentRequest) -> StatusResponse:
    command = AssignAgent(project_id=project_id, actor_id=body.actor_id, agent_id=body.agent_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@project_router.delete("/{project_id}/agent", response_model=StatusResponse)
async def unassign_agent(project_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(UnassignAgent(project_id=project_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


@project_router.post("/{project_id}/milestones", status_code=201, response_model=CreatedResponse)
async def add_milestone(project_id: str, body: AddMilestoneRequest) -> CreatedResponse:
    command = AddMilestone(
        project_id=project_id,
        actor_id=body.actor_id,
        title=body.title,
        amount=body.amount,
        description=body.description,
    )
    milestone_id = current_domain.process(command, asynchronous=False)
    return CreatedResponse(id=milestone_id)


@project_router.put("/{project_id}/milestones/{milestone_id}", response_model=StatusResponse)
async def update_milestone(project_id: str, milestone_id: str, body: UpdateMilestoneRequest) -> StatusResponse:
    command = UpdateMilestone(
        project_id=project_id,
        milestone_id=milestone_id,
        actor_id=body.actor_id,
        title=body.title,
        amount=body.amount,
        description=body.description,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@project_router.put("/{project_id}/milestones/{milestone_id}/complete", response_model=StatusResponse)
async def complete_milestone(project_id: str, milestone_id: str, body: ActorRequest) -> StatusResponse:
    command = CompleteMilestone(project_id=project_id, milestone_id=milestone_id, actor_id=body.actor_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@project_router.put("/{project_id}/milestones/{milestone_id}/payment-status", response_model=StatusResponse)
async def change_payment_status(project_id: str, milestone_id: str, body: PaymentStatusRequest) -> StatusResponse:
    command = ChangeMilestonePaymentStatus(
        project_id=project_id,
        milestone_id=milestone_id,
        actor_id=body.actor_id,
        payment_status=body.payment_status,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Bids and biddings
# ---------------------------------------------------------------------------
@bid_router.post("/bids", status_code=201, response_model=CreatedResponse)
async def post_bid(body: PostBidRequest) -> CreatedResponse:
    command = PostBid(
        project_id=body.project_id,
        actor_id=body.actor_id,
        title=body.title,
        description=body.description,
        budget=body.budget,
    )
    bid_id = current_domain.process(command, asynchronous=False)
    return CreatedResponse(id=bid_id)


@bid_router.put("/bids/{bid_id}/close", response_model=StatusResponse)
async def close_bid(bid_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(CloseBid(bid_id=bid_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


@bid_router.post("/bids/{bid_id}/biddings", status_code=201, response_model=CreatedResponse)
async def submit_bidding(bid_id: str, body: SubmitBiddingRequest) -> CreatedResponse:
    command = SubmitBidding(
        bid_id=bid_id,
        actor_id=body.actor_id,
        amount=body.amount,
        timeline=body.timeline,
        proposal=body.proposal,
    )
    bidding_id = current_domain.process(command, asynchronous=False)
    return CreatedResponse(id=bidding_id)


@bid_router.put("/biddings/{bidding_id}/withdraw", response_model=StatusResponse)
async def withdraw_bidding(bidding_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(WithdrawBidding(bidding_id=bidding_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


@bid_router.put("/biddings/{bidding_id}/shortlist", response_model=StatusResponse)
async def shortlist_bidding(bidding_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(ShortlistBidding(bidding_id=bidding_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


@bid_router.put("/biddings/{bidding_id}/unshortlist", response_model=StatusResponse)
async def unshortlist_bidding(bidding_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(UnshortlistBidding(bidding_id=bidding_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


@bid_router.put("/biddings/{bidding_id}/accept", response_model=StatusResponse)
async def accept_bidding(bidding_id: str, body: ActorRequest) -> StatusResponse:
    accept_bid(bidding_id, body.actor_id)
    return StatusResponse()


@bid_router.put("/biddings/{bidding_id}/decline", response_model=StatusResponse)
async def decline_bidding(bidding_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(DeclineBidding(bidding_id=bidding_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
@notification_router.get("/users/{user_id}", response_model=NotificationListResponse)
async def list_notifications(
    user_id: str,
    unread_only: bool = False,
    cursor: str | None = None,
    limit: int = Query(20, ge=1, le=100),
) -> NotificationListResponse:
    before = decode_cursor(cursor)[0] if cursor else None
    items = current_domain.repository_for(Notification).for_user(
        user_id, unread_only=unread_only, before=before, limit=limit
    )
    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                id=str(n.id),
                type=n.notification_type,
                kind=n.kind,
                title=n.title,
                message=n.message,
                priority=n.priority,
                link=n.link,
                related_project_id=str(n.related_project_id) if n.related_project_id else None,
                is_read=n.is_read,
                delivery_status=n.delivery_status,
                created_at=_iso(n.created_at),
            )
            for n in items
        ],
        next_cursor=next_cursor(items, limit),
    )


@notification_router.put("/{notification_id}/read", response_model=StatusResponse)
async def mark_notification_read(notification_id: str, body: MarkReadRequest) -> StatusResponse:
    command = MarkNotificationRead(notification_id=notification_id, reader_id=body.reader_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@notification_router.put("/users/{user_id}/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(user_id: str) -> MarkAllReadResponse:
    marked = current_domain.process(MarkAllNotificationsRead(user_id=user_id), asynchronous=False)
    return MarkAllReadResponse(marked=marked or 0)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------
@audit_router.get("/{target_id}", response_model=AuditListResponse)
async def audit_for_target(target_id: str) -> AuditListResponse:
    entries = current_domain.repository_for(AuditLog).for_target(target_id)
    return AuditListResponse(
        entries=[
            AuditEntryResponse(
                id=str(e.id),
                action=e.action,
                actor_id=str(e.actor_id),
                actor_name=e.actor_name,
                description=e.description,
                severity=e.severity,
                created_at=_iso(e.created_at),
            )
            for e in entries
        ]
    )

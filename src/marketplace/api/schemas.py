"""Pydantic request/response models for the marketplace API.

API schemas are separate from Protean commands (anti-corruption pattern).
The acting user is carried as ``actor_id`` in each request body.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class RegisterUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: str = Field(..., max_length=254, examples=["jane@example.com"])
    role: str = Field(..., examples=["client"])
    registered_by: str | None = None


class ActorRequest(BaseModel):
    actor_id: str


class CreateProjectRequest(BaseModel):
    actor_id: str
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    budget: float | None = Field(None, ge=0)
    client_id: str | None = None


class UpdateProjectRequest(BaseModel):
    actor_id: str
    title: str | None = Field(None, max_length=200)
    description: str | None = None
    budget: float | None = Field(None, ge=0)


class TransitionRequest(BaseModel):
    actor_id: str
    target_status: str = Field(..., examples=["in_bidding"])
    remark: str | None = None
    freelancer_id: str | None = None


class AssignAgentRequest(BaseModel):
    actor_id: str
    agent_id: str


class AddMilestoneRequest(BaseModel):
    actor_id: str
    title: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., ge=0)
    description: str | None = None


class UpdateMilestoneRequest(BaseModel):
    actor_id: str
    title: str | None = Field(None, max_length=200)
    amount: float | None = Field(None, ge=0)
    description: str | None = None


class PaymentStatusRequest(BaseModel):
    actor_id: str
    payment_status: str = Field(..., examples=["payment_requested"])


class PostBidRequest(BaseModel):
    actor_id: str
    project_id: str
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    budget: float | None = Field(None, ge=0)


class SubmitBiddingRequest(BaseModel):
    actor_id: str
    amount: float = Field(..., ge=0)
    timeline: str | None = Field(None, max_length=100)
    proposal: str | None = None


class MarkReadRequest(BaseModel):
    reader_id: str


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class CreatedResponse(BaseModel):
    id: str


class TransitionResponse(BaseModel):
    timeline_entry_id: str


class TimelineEntryResponse(BaseModel):
    id: str
    action: str
    title: str
    old_status: str
    new_status: str
    actor_id: str
    actor_role: str
    remark: str | None = None
    created_at: str | None = None


class TimelineResponse(BaseModel):
    project_id: str
    entries: list[TimelineEntryResponse]


class NotificationResponse(BaseModel):
    id: str
    type: str
    kind: str
    title: str
    message: str
    priority: str
    link: str | None = None
    related_project_id: str | None = None
    is_read: bool
    delivery_status: str
    created_at: str | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    next_cursor: str | None = None


class MarkAllReadResponse(BaseModel):
    marked: int


class AuditEntryResponse(BaseModel):
    id: str
    action: str
    actor_id: str
    actor_name: str | None = None
    description: str | None = None
    severity: str
    created_at: str | None = None


class AuditListResponse(BaseModel):
    entries: list[AuditEntryResponse]

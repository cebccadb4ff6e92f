"""Error taxonomy for the marketplace domain.

Input and rule violations are Protean ``ValidationError`` subclasses so the
FastAPI integration maps them to 400 responses. Missing records surface as
Protean's ``ObjectNotFoundError`` (404). Business conflicts get their own
hierarchy and a 409 handler in ``marketplace.api.errors``. Delivery errors never leave the
delivery layer.
"""

from protean.exceptions import ValidationError


class InvalidTransition(ValidationError):
    """A status change that the current state or the actor's role does not allow."""

    def __init__(self, current_status: str, target_status: str, role: str, allowed: list[str], reason: str = ""):
        self.current_status = current_status
        self.target_status = target_status
        self.role = role
        self.allowed = allowed

        allowed_text = ", ".join(allowed) if allowed else "none"
        message = reason or f"Cannot move project from {current_status} to {target_status} as {role}"
        super().__init__({"status": [f"{message}. Allowed next statuses for {role}: {allowed_text}"]})


class MissingRemark(ValidationError):
    def __init__(self, target_status: str):
        self.target_status = target_status
        super().__init__({"remark": [f"Please provide a reason for setting the project to {target_status}."]})


class MissingAssignment(ValidationError):
    def __init__(self, message: str):
        super().__init__({"assigned_freelancer_id": [message]})


class ConflictError(Exception):
    """The request lost against a concurrent or earlier write."""

    def __init__(self, messages: dict):
        self.messages = messages
        super().__init__(messages)


class AlreadyAccepted(ConflictError):
    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__({"project_id": ["Another freelancer has already been accepted for this project."]})


class DeliveryFailure(Exception):
    """A realtime or email transport could not deliver a message."""


class RoutingError(Exception):
    """The notification routing table cannot serve a request (unknown event key)."""

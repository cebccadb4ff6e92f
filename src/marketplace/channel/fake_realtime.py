"""Fake realtime adapter that records pushes in memory for testing."""

from marketplace.channel.realtime_port import RealtimePort
from marketplace.shared.errors import DeliveryFailure


class FakeRealtimeAdapter(RealtimePort):
    """Realtime adapter that records emitted messages for test assertions."""

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds
        self.user_messages: list[dict] = []
        self.role_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Realtime push failed"
        self.failing_users: set[str] = set()
        self.closed = False

    def configure(self, should_succeed: bool = True, failure_reason: str = "Realtime push failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def fail_for(self, *user_ids: str):
        """Make pushes to the given users fail while others succeed."""
        self.failing_users.update(str(user_id) for user_id in user_ids)

    def emit_to_user(self, user_id: str, channel: str, payload: dict) -> None:
        if not self.should_succeed or str(user_id) in self.failing_users:
            raise DeliveryFailure(self.failure_reason)

        self.user_messages.append({"user_id": str(user_id), "channel": channel, "payload": payload})

    def emit_to_role(self, role: str, channel: str, payload: dict) -> None:
        if not self.should_succeed:
            raise DeliveryFailure(self.failure_reason)

        self.role_messages.append({"role": role, "channel": channel, "payload": payload})

    def messages_for(self, user_id: str) -> list[dict]:
        return [m for m in self.user_messages if m["user_id"] == str(user_id)]

    def close(self) -> None:
        self.closed = True

    def reset(self):
        """Clear recorded messages (useful between tests)."""
        self.user_messages.clear()
        self.role_messages.clear()
        self.failing_users.clear()
        self.should_succeed = True
        self.failure_reason = "Realtime push failed"
        self.closed = False

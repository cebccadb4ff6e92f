"""Abstract realtime port for socket-style pushes."""

from abc import ABC, abstractmethod


class RealtimePort(ABC):
    """Abstract interface for realtime push adapters.

    Implementations raise ``DeliveryFailure`` when a push cannot be handed
    to the transport within ``timeout_seconds``.
    """

    timeout_seconds: float = 5.0

    @abstractmethod
    def emit_to_user(self, user_id: str, channel: str, payload: dict) -> None:
        """Push ``payload`` on ``channel`` to every session of one user."""
        ...

    @abstractmethod
    def emit_to_role(self, role: str, channel: str, payload: dict) -> None:
        """Broadcast ``payload`` on ``channel`` to everyone holding ``role``."""
        ...

    def close(self) -> None:
        """Release transport resources. Adapters without any may ignore this."""

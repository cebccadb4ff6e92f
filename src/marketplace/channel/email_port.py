"""Abstract email port for templated email dispatch."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Abstract interface for email dispatch adapters."""

    @abstractmethod
    def send_templated_email(self, to: str, subject: str, html_body: str) -> dict:
        """Send an HTML email.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...

    def close(self) -> None:
        """Release transport resources. Adapters without any may ignore this."""

"""In-memory email adapter used in development and tests."""

from itertools import count

from marketplace.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    """Keeps every accepted email in ``sent_emails``; can be told to fail."""

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds
        self.sent_emails: list[dict] = []
        self.failure: str | None = None
        self._ids = count(1)

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed"):
        self.failure = None if should_succeed else failure_reason

    def send_templated_email(self, to: str, subject: str, html_body: str) -> dict:
        if self.failure:
            return {"message_id": None, "status": "failed", "error": self.failure}

        message_id = f"email-{next(self._ids):06d}"
        self.sent_emails.append({"message_id": message_id, "to": to, "subject": subject, "html_body": html_body})
        return {"message_id": message_id, "status": "sent"}

    def emails_to(self, address: str) -> list[dict]:
        return [e for e in self.sent_emails if e["to"] == address]

"""Bid aggregate — an admin-authored posting that freelancers bid against."""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text

from marketplace.bidding.events import BidClosed, BidPosted
from marketplace.domain import marketplace


class BidStatus(Enum):
    OPEN = "open"
    CLOSED = "closed"


@marketplace.aggregate
class Bid:
    project_id: Identifier(required=True)
    title: String(required=True, max_length=200)
    description: Text()
    budget: Float(min_value=0.0)
    status: String(choices=BidStatus, default=BidStatus.OPEN.value)
    created_by: Identifier(required=True)
    created_at: DateTime()
    closed_at: DateTime()

    @classmethod
    def post(cls, project_id, title, created_by, description=None, budget=None):
        now = datetime.now(UTC)
        bid = cls(
            project_id=project_id,
            title=title,
            description=description,
            budget=budget,
            status=BidStatus.OPEN.value,
            created_by=created_by,
            created_at=now,
        )
        bid.raise_(
            BidPosted(
                bid_id=str(bid.id),
                project_id=str(project_id),
                title=title,
                budget=budget,
                posted_by=str(created_by),
                posted_at=now,
            )
        )
        return bid

    @property
    def is_open(self) -> bool:
        return self.status == BidStatus.OPEN.value

    def close(self, closed_by):
        if not self.is_open:
            raise ValidationError({"status": ["Bid is already closed"]})

        now = datetime.now(UTC)
        self.status = BidStatus.CLOSED.value
        self.closed_at = now
        self.raise_(
            BidClosed(
                bid_id=str(self.id),
                project_id=str(self.project_id),
                closed_by=str(closed_by),
                closed_at=now,
            )
        )

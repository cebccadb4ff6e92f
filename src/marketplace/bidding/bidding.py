"""Bidding aggregate — a freelancer's proposal against a Bid posting.

State Machine (5 states):
    PENDING → SHORTLISTED → ACCEPTED → REJECTED (decline releases acceptance)
    SHORTLISTED → PENDING (un-shortlist)
    PENDING | SHORTLISTED → ACCEPTED | REJECTED
    PENDING → WITHDRAWN

The ``is_shortlisted`` / ``is_accepted`` / ``is_declined`` flags mirror the
status and are kept in step inside ``atomic_change`` blocks.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from marketplace.bidding.events import (
    BiddingAccepted,
    BiddingDeclined,
    BiddingShortlisted,
    BiddingSubmitted,
    BiddingUnshortlisted,
    BiddingWithdrawn,
)
from marketplace.domain import marketplace


class BiddingStatus(Enum):
    PENDING = "pending"
    SHORTLISTED = "shortlisted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


_VALID_TRANSITIONS = {
    BiddingStatus.PENDING: {
        BiddingStatus.SHORTLISTED,
        BiddingStatus.ACCEPTED,
        BiddingStatus.REJECTED,
        BiddingStatus.WITHDRAWN,
    },
    BiddingStatus.SHORTLISTED: {
        BiddingStatus.PENDING,  # Un-shortlist
        BiddingStatus.ACCEPTED,
        BiddingStatus.REJECTED,
    },
    BiddingStatus.ACCEPTED: {
        BiddingStatus.REJECTED,
    },
    BiddingStatus.REJECTED: set(),  # Terminal
    BiddingStatus.WITHDRAWN: set(),  # Terminal
}


@marketplace.aggregate
class Bidding:
    """A freelancer's amount and timeline offer for a project's Bid."""

    bid_id: Identifier(required=True)
    project_id: Identifier(required=True)
    freelancer_id: Identifier(required=True)

    amount: Float(required=True, min_value=0.0)
    timeline: String(max_length=100)
    proposal: Text()

    status: String(choices=BiddingStatus, default=BiddingStatus.PENDING.value)
    is_shortlisted: Boolean(default=False)
    is_accepted: Boolean(default=False)
    is_declined: Boolean(default=False)

    submitted_at: DateTime()
    reviewed_at: DateTime()
    reviewed_by: Identifier()

    @invariant.post
    def flags_match_status(self):
        status = BiddingStatus(self.status)
        if self.is_accepted != (status == BiddingStatus.ACCEPTED):
            raise ValidationError({"is_accepted": ["Accepted flag does not match status"]})
        if self.is_declined != (status == BiddingStatus.REJECTED):
            raise ValidationError({"is_declined": ["Declined flag does not match status"]})
        if self.is_shortlisted and status not in (BiddingStatus.SHORTLISTED, BiddingStatus.ACCEPTED):
            raise ValidationError({"is_shortlisted": ["Only shortlisted or accepted biddings can be flagged shortlisted"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(cls, bid_id, project_id, freelancer_id, amount, timeline=None, proposal=None):
        now = datetime.now(UTC)
        bidding = cls(
            bid_id=bid_id,
            project_id=project_id,
            freelancer_id=freelancer_id,
            amount=amount,
            timeline=timeline,
            proposal=proposal,
            status=BiddingStatus.PENDING.value,
            submitted_at=now,
        )
        bidding.raise_(
            BiddingSubmitted(
                bidding_id=str(bidding.id),
                bid_id=str(bid_id),
                project_id=str(project_id),
                freelancer_id=str(freelancer_id),
                amount=amount,
                submitted_at=now,
            )
        )
        return bidding

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = BiddingStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _mark_reviewed(self, reviewer_id, now):
        self.reviewed_by = reviewer_id
        self.reviewed_at = now

    def withdraw(self):
        if BiddingStatus(self.status) != BiddingStatus.PENDING:
            raise ValidationError({"status": ["Only pending biddings can be withdrawn"]})

        now = datetime.now(UTC)
        self.status = BiddingStatus.WITHDRAWN.value
        self.raise_(
            BiddingWithdrawn(
                bidding_id=str(self.id),
                project_id=str(self.project_id),
                freelancer_id=str(self.freelancer_id),
                withdrawn_at=now,
            )
        )

    def shortlist(self, reviewer_id):
        self._assert_can_transition(BiddingStatus.SHORTLISTED)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = BiddingStatus.SHORTLISTED.value
            self.is_shortlisted = True
            self._mark_reviewed(reviewer_id, now)

        self.raise_(
            BiddingShortlisted(
                bidding_id=str(self.id),
                project_id=str(self.project_id),
                freelancer_id=str(self.freelancer_id),
                reviewed_by=str(reviewer_id),
                shortlisted_at=now,
            )
        )

    def unshortlist(self, reviewer_id):
        if BiddingStatus(self.status) != BiddingStatus.SHORTLISTED:
            raise ValidationError({"status": ["Only shortlisted biddings can be removed from the shortlist"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = BiddingStatus.PENDING.value
            self.is_shortlisted = False
            self._mark_reviewed(reviewer_id, now)

        self.raise_(
            BiddingUnshortlisted(
                bidding_id=str(self.id),
                project_id=str(self.project_id),
                freelancer_id=str(self.freelancer_id),
                reviewed_by=str(reviewer_id),
                unshortlisted_at=now,
            )
        )

    def accept(self, reviewer_id):
        """Mark this bidding accepted.

        Uniqueness across the project is not visible from here; callers go
        through the ``AcceptBid`` handler, which holds the per-project lock.
        """
        self._assert_can_transition(BiddingStatus.ACCEPTED)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = BiddingStatus.ACCEPTED.value
            self.is_accepted = True
            self.is_declined = False
            self._mark_reviewed(reviewer_id, now)

        self.raise_(
            BiddingAccepted(
                bidding_id=str(self.id),
                project_id=str(self.project_id),
                freelancer_id=str(self.freelancer_id),
                amount=self.amount,
                accepted_by=str(reviewer_id),
                accepted_at=now,
            )
        )

    def decline(self, reviewer_id):
        self._assert_can_transition(BiddingStatus.REJECTED)

        previous = self.status
        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = BiddingStatus.REJECTED.value
            self.is_accepted = False
            self.is_shortlisted = False
            self.is_declined = True
            self._mark_reviewed(reviewer_id, now)

        self.raise_(
            BiddingDeclined(
                bidding_id=str(self.id),
                project_id=str(self.project_id),
                freelancer_id=str(self.freelancer_id),
                previous_status=previous,
                declined_by=str(reviewer_id),
                declined_at=now,
            )
        )

"""Notifications react to Bidding events."""

from protean.utils.mixins import handle

from marketplace.bidding.events import (
    BiddingAccepted,
    BiddingDeclined,
    BiddingShortlisted,
    BiddingSubmitted,
    BiddingWithdrawn,
)
from marketplace.domain import marketplace
from marketplace.notification.dispatcher import dispatch, event_identity
from marketplace.notification.notification import Notification
from marketplace.notification.routing import EventKey


def _bidding_payload(event) -> dict:
    return {
        "project_id": str(event.project_id),
        "bidding_id": str(event.bidding_id),
        "freelancer_id": str(event.freelancer_id),
    }


@marketplace.event_handler(part_of=Notification, stream_category="marketplace::bidding")
class BiddingEventsHandler:
    @handle(BiddingSubmitted)
    def on_bidding_submitted(self, event: BiddingSubmitted) -> None:
        payload = {**_bidding_payload(event), "bid_amount": f"{event.amount:,.2f}"}
        source = event_identity("bidding_submitted", event.bidding_id)
        dispatch(EventKey.BID_RECEIVED, payload, source_event_id=source)
        dispatch(EventKey.BID_CREATED, payload, source_event_id=source)

    @handle(BiddingWithdrawn)
    def on_bidding_withdrawn(self, event: BiddingWithdrawn) -> None:
        dispatch(
            EventKey.BID_WITHDRAWN,
            _bidding_payload(event),
            source_event_id=event_identity("bidding_withdrawn", event.bidding_id),
        )

    @handle(BiddingShortlisted)
    def on_bidding_shortlisted(self, event: BiddingShortlisted) -> None:
        dispatch(
            EventKey.BID_SHORTLISTED,
            {**_bidding_payload(event), "reviewed_by": str(event.reviewed_by)},
            source_event_id=event_identity("bidding_shortlisted", event.bidding_id, event.shortlisted_at),
        )

    @handle(BiddingAccepted)
    def on_bidding_accepted(self, event: BiddingAccepted) -> None:
        dispatch(
            EventKey.BID_ACCEPTED,
            {
                **_bidding_payload(event),
                "bid_amount": f"{event.amount:,.2f}",
                "accepted_by": str(event.accepted_by),
            },
            source_event_id=event_identity("bidding_accepted", event.bidding_id),
        )

    @handle(BiddingDeclined)
    def on_bidding_declined(self, event: BiddingDeclined) -> None:
        dispatch(
            EventKey.BID_REJECTED,
            {**_bidding_payload(event), "declined_by": str(event.declined_by)},
            source_event_id=event_identity("bidding_declined", event.bidding_id),
        )

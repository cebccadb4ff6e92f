"""Domain events for Bid postings and freelancer Biddings."""

from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Bid")
class BidPosted:
    __version__ = 1

    bid_id: Identifier(required=True)
    project_id: Identifier(required=True)
    title: String(required=True)
    budget: Float()
    posted_by: Identifier(required=True)
    posted_at: DateTime(required=True)


@marketplace.event(part_of="Bid")
class BidClosed:
    __version__ = 1

    bid_id: Identifier(required=True)
    project_id: Identifier(required=True)
    closed_by: Identifier(required=True)
    closed_at: DateTime(required=True)


@marketplace.event(part_of="Bidding")
class BiddingSubmitted:
    __version__ = 1

    bidding_id: Identifier(required=True)
    bid_id: Identifier(required=True)
    project_id: Identifier(required=True)
    freelancer_id: Identifier(required=True)
    amount: Float(required=True)
    submitted_at: DateTime(required=True)


@marketplace.event(part_of="Bidding")
class BiddingWithdrawn:
    __version__ = 1

    bidding_id: Identifier(required=True)
    project_id: Identifier(required=True)
    freelancer_id: Identifier(required=True)
    withdrawn_at: DateTime(required=True)


@marketplace.event(part_of="Bidding")
class BiddingShortlisted:
    __version__ = 1

    bidding_id: Identifier(required=True)
    project_id: Identifier(required=True)
    freelancer_id: Identifier(required=True)
    reviewed_by: Identifier(required=True)
    shortlisted_at: DateTime(required=True)


@marketplace.event(part_of="Bidding")
class BiddingUnshortlisted:
    __version__ = 1

    bidding_id: Identifier(required=True)
    project_id: Identifier(required=True)
    freelancer_id: Identifier(required=True)
    reviewed_by: Identifier(required=True)
    unshortlisted_at: DateTime(required=True)


@marketplace.event(part_of="Bidding")
class BiddingAccepted:
    __version__ = 1

    bidding_id: Identifier(required=True)
    project_id: Identifier(required=True)
    freelancer_id: Identifier(required=True)
    amount: Float(required=True)
    accepted_by: Identifier(required=True)
    accepted_at: DateTime(required=True)


@marketplace.event(part_of="Bidding")
class BiddingDeclined:
    __version__ = 1

    bidding_id: Identifier(required=True)
    project_id: Identifier(required=True)
    freelancer_id: Identifier(required=True)
    previous_status: String(required=True)
    declined_by: Identifier(required=True)
    declined_at: DateTime(required=True)

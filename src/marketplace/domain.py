"""Marketplace bounded context — project lifecycle and notification fan-out.

Coordinates clients, freelancers, agents and admins around projects, bids
and milestones. Every state change is validated against a role-gated state
machine, recorded in an append-only audit trail and fanned out as
notifications (persisted record + realtime push) to the users who need to
know about it.
"""

from protean.domain import Domain

from marketplace.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
marketplace = Domain(name="marketplace")

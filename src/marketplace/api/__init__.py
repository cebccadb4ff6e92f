"""Marketplace API package."""

from marketplace.api.routes import (
    audit_router,
    bid_router,
    notification_router,
    project_router,
    user_router,
)

__all__ = ["user_router", "project_router", "bid_router", "notification_router", "audit_router"]

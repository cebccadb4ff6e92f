"""Delivery settings read from the ``[custom]`` section of domain.toml."""

from dataclasses import dataclass

from protean.utils.globals import current_domain


@dataclass(frozen=True)
class DeliverySettings:
    max_attempts: int = 3
    timeout_seconds: float = 5.0
    backoff_seconds: float = 2.0
    email_enabled: bool = True
    link_prefix: str = "/projects"


def delivery_settings() -> DeliverySettings:
    custom = current_domain.config.get("custom", {}) or {}
    delivery = custom.get("delivery", {}) or {}
    notifications = custom.get("notifications", {}) or {}
    defaults = DeliverySettings()
    return DeliverySettings(
        max_attempts=int(delivery.get("max_attempts", defaults.max_attempts)),
        timeout_seconds=float(delivery.get("timeout_seconds", defaults.timeout_seconds)),
        backoff_seconds=float(delivery.get("backoff_seconds", defaults.backoff_seconds)),
        email_enabled=bool(delivery.get("email_enabled", defaults.email_enabled)),
        link_prefix=str(notifications.get("link_prefix", defaults.link_prefix)),
    )

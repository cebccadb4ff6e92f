"""The single entry point for writing audit records."""

import json
from datetime import UTC, date, datetime

import structlog
from protean.utils.globals import current_domain

from marketplace.audit.audit_log import AUDIT_MESSAGES, AUDIT_SEVERITY, AuditAction, AuditLog, AuditSeverity

logger = structlog.get_logger(__name__)


class _BlankDefaults(dict):
    def __missing__(self, key):
        return "?"


def _json_default(value):
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)


def _dumps(value) -> str | None:
    if value is None:
        return None
    return json.dumps(value, default=_json_default, sort_keys=True)


def detect_changes(previous_values: dict | None, new_values: dict | None) -> dict:
    """Keys whose value differs between the two snapshots, as ``{key: {"from": a, "to": b}}``."""
    previous_values = previous_values or {}
    new_values = new_values or {}
    changes = {}
    for key in sorted(set(previous_values) | set(new_values)):
        before = previous_values.get(key)
        after = new_values.get(key)
        if before != after:
            changes[key] = {"from": before, "to": after}
    return changes


def _target_name(target) -> str:
    return getattr(target, "title", None) or getattr(target, "name", None) or str(target.id)


def record_audit(
    actor,
    action: AuditAction,
    target,
    previous_values: dict | None = None,
    new_values: dict | None = None,
    metadata: dict | None = None,
) -> AuditLog:
    """Add an audit record for ``action`` to the current unit of work.

    ``actor`` is the acting ``User``; ``target`` is any aggregate (its
    ``title`` or ``name`` becomes the human label).
    """
    previous_values = previous_values or {}
    new_values = new_values or {}
    target_name = _target_name(target)

    context = _BlankDefaults(actor_name=actor.name, target_name=target_name)
    context.update({f"old_{key}": value for key, value in previous_values.items()})
    context.update({f"new_{key}": value for key, value in new_values.items()})
    description = AUDIT_MESSAGES[action].format_map(context)

    record = AuditLog(
        actor_id=str(actor.id),
        actor_name=actor.name,
        actor_role=actor.role,
        action=action.value,
        target_type=type(target).__name__,
        target_id=str(target.id),
        target_name=target_name,
        description=description,
        previous_values=_dumps(previous_values),
        new_values=_dumps(new_values),
        changes=_dumps(detect_changes(previous_values, new_values)),
        details=_dumps(metadata or {}),
        severity=AUDIT_SEVERITY.get(action, AuditSeverity.LOW).value,
        created_at=datetime.now(UTC),
    )
    current_domain.repository_for(AuditLog).add(record)

    logger.info(
        "Audit recorded",
        action=action.value,
        actor_id=str(actor.id),
        target_type=record.target_type,
        target_id=record.target_id,
        severity=record.severity,
    )
    return record

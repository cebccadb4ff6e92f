"""Placeholder rendering for routing-rule titles and messages."""

import re
from html import escape

import structlog

logger = structlog.get_logger(__name__)

PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render(template: str, context) -> str:
    """Substitute ``{name}`` tokens from ``context``.

    A token the context cannot resolve stays in the output verbatim and is
    logged; a gap in the data never stops a notification from being sent.
    """
    missing = []

    def _substitute(match):
        name = match.group(1)
        try:
            value = context[name]
        except KeyError:
            value = None
        if value is None:
            missing.append(name)
            return match.group(0)
        return str(value)

    rendered = PLACEHOLDER.sub(_substitute, template)
    if missing:
        logger.warning(
            "Unresolved template placeholders",
            placeholders=missing,
            template=template,
        )
    return rendered


def render_email_html(title: str, message: str, link: str | None = None) -> str:
    """Minimal HTML body for rules that also go out by email."""
    parts = [f"<h2>{escape(title)}</h2>", f"<p>{escape(message)}</p>"]
    if link:
        parts.append(f'<p><a href="{escape(link)}">View project</a></p>')
    return "\n".join(parts)

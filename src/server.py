"""Protean Engine runner for the marketplace domain.

Starts Engine workers that process events asynchronously:
- OutboxProcessor: polls the outbox table, publishes events to Redis Streams
- StreamSubscriptions: reads Redis Streams, invokes projectors and event handlers

Event handlers that fail are retried by the Engine, which gives the
notification fan-out at-least-once execution; dedup keys keep redelivered
events from duplicating notifications.

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import asyncio

from protean.server.engine import Engine


def _get_domain():
    from marketplace.domain import marketplace

    marketplace.init()
    return marketplace


async def run():
    engine = Engine(_get_domain())
    await engine.run()


def main():
    asyncio.run(run())


if __name__ == "__main__":
    main()

"""Marketplace management CLI.

Provides commands to create and drop the database schema and to retry
notification pushes that failed.

Usage:
    python src/manage.py setup-db           # Create all tables
    python src/manage.py drop-db            # Drop all tables
    python src/manage.py retry-deliveries   # Re-push failed notifications
"""

import argparse
import sys


def setup_database():
    """Create the database schema for the marketplace domain."""
    from marketplace.domain import marketplace
    from marketplace.utils.db import setup_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Creating marketplace database schema...")
    setup_db(marketplace)
    print("Done.")


def drop_database():
    """Drop the database schema for the marketplace domain."""
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Dropping marketplace database schema...")
    drop_db(marketplace)
    print("Done.")


def retry_deliveries(limit: int = 100) -> dict:
    """Re-push failed notifications whose backoff window has passed."""
    from marketplace.domain import marketplace
    from marketplace.notification.retry import RetryFailedDeliveries

    marketplace.init()
    with marketplace.domain_context():
        summary = marketplace.process(RetryFailedDeliveries(limit=limit), asynchronous=False)

    print(
        f"Retried {summary['retried']}: {summary['pushed']} pushed, "
        f"{summary['failed']} failed, {summary['dead_lettered']} dead-lettered."
    )
    return summary


def main():
    parser = argparse.ArgumentParser(description="Marketplace management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    retry_parser = subparsers.add_parser("retry-deliveries", help="Retry failed notification pushes")
    retry_parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum notifications to retry in this run (default: 100)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "retry-deliveries":
        retry_deliveries(args.limit)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

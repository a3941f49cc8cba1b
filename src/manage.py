"""TillPoint database management CLI.

Creates and drops the order ledger and pending-payment tables, and lists
pending M-Pesa payments that were never resolved.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db                        # Drop all tables
    python src/manage.py sweep-pending --older-than 24  # List orphaned payments
"""

import argparse
import sys


def setup_databases():
    """Create the ledger and pending-payment tables."""
    from shared.config import get_settings
    from shared.db import get_engine, setup_db

    print(f"Creating schema in {get_settings().database_url}...")
    setup_db(get_engine())
    print("Done.")


def drop_databases():
    """Drop the ledger and pending-payment tables."""
    from shared.config import get_settings
    from shared.db import drop_db, get_engine

    print(f"Dropping schema in {get_settings().database_url}...")
    drop_db(get_engine())
    print("Done.")


def sweep_pending(older_than_hours: int) -> int:
    """Print orphaned pending payments. Returns how many were found."""
    from payments.payment.reconciliation import sweep_orphaned_payments
    from payments.pending import get_pending_store

    orphans = sweep_orphaned_payments(get_pending_store(), older_than_hours)
    for orphan in orphans:
        print(
            f"{orphan.correlation_id}  order={orphan.draft.id}  total={orphan.draft.total:g}  "
            f"phone={orphan.draft.mpesa_number}  created={orphan.created_at.isoformat()}"
        )
    print(f"{len(orphans)} orphaned pending payment(s) older than {older_than_hours}h.")
    return len(orphans)


def main(argv=None):
    parser = argparse.ArgumentParser(description="TillPoint database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    sweep_parser = subparsers.add_parser("sweep-pending", help="List orphaned pending M-Pesa payments")
    sweep_parser.add_argument(
        "--older-than",
        type=int,
        default=24,
        dest="older_than_hours",
        help="Age threshold in hours (default: 24)",
    )

    args = parser.parse_args(argv)

    from shared.config import get_settings
    from shared.logging import configure_logging

    configure_logging(get_settings().env)

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "sweep-pending":
        sweep_pending(args.older_than_hours)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

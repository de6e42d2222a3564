"""Warehouse management CLI.

Creates and drops the database schema, and runs monthly invoice generation
by hand. Manual runs issue invoices straight away (status ``sent``); the
scheduled run leaves them in draft.

Usage:
    python src/manage.py setup-db                             # Create all tables
    python src/manage.py drop-db                              # Drop all tables
    python src/manage.py generate-invoices                    # Bill last month
    python src/manage.py generate-invoices --month 3 --year 2025
"""

import argparse
import json
import sys


def setup_database():
    """Create the warehouse schema, constraints and indexes."""
    from warehouse.domain import warehouse
    from warehouse.utils.db import setup_db

    print("Initializing warehouse domain...")
    warehouse.init()
    print("Creating warehouse database schema...")
    setup_db(warehouse)
    print("Done.")


def drop_database():
    """Drop every warehouse table."""
    from warehouse.domain import warehouse
    from warehouse.utils.db import drop_db

    print("Initializing warehouse domain...")
    warehouse.init()
    print("Dropping warehouse database schema...")
    drop_db(warehouse)
    print("Done.")


def generate_invoices(month=None, year=None, draft=False):
    """Run monthly invoice generation for every active client and print the result."""
    from warehouse.billing.generator import MonthlyInvoiceGenerator
    from warehouse.clients import get_client_directory
    from warehouse.domain import warehouse

    warehouse.init()
    with warehouse.domain_context():
        generator = MonthlyInvoiceGenerator(warehouse, get_client_directory())
        result = generator.run(month=month, year=year, issue=not draft)

    print(json.dumps(result, indent=2, default=str))
    return result


def main():
    parser = argparse.ArgumentParser(description="Warehouse management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    generate_parser = subparsers.add_parser("generate-invoices", help="Generate monthly invoices")
    generate_parser.add_argument("--month", type=int, choices=range(1, 13), help="Billing month (default: last month)")
    generate_parser.add_argument("--year", type=int, help="Billing year (default: last month's year)")
    generate_parser.add_argument("--draft", action="store_true", help="Create invoices as draft instead of sent")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "generate-invoices":
        if (args.month is None) != (args.year is None):
            parser.error("--month and --year must be given together")
        result = generate_invoices(args.month, args.year, args.draft)
        if result["errors"]:
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

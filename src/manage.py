"""Storefront database management CLI.

Creates and drops the schema of the domain's SQL provider and of the
inventory ledger.

Usage:
    python src/manage.py setup-db                 # Domain tables and ledger tables
    python src/manage.py setup-db --only ledger   # Ledger tables only
    python src/manage.py drop-db
"""

import argparse
import sys

TARGETS = ["domain", "ledger"]


def _ledger():
    from storefront.inventory.ledger import SqlStockLedger, get_ledger

    ledger = get_ledger()
    return ledger if isinstance(ledger, SqlStockLedger) else None


def setup_databases(targets=None):
    from storefront.domain import storefront
    from storefront.utils.db import setup_db

    targets = targets or TARGETS
    if "domain" in targets:
        print("Initializing storefront domain...")
        storefront.init()
        print("Creating domain schema...")
        setup_db(storefront)
    if "ledger" in targets:
        ledger = _ledger()
        if ledger is None:
            print("  STOREFRONT_LEDGER_URL is not set; the in-memory ledger needs no schema.")
        else:
            print("Creating ledger schema...")
            ledger.create_schema()

    print("Done.")


def drop_databases(targets=None):
    from storefront.domain import storefront
    from storefront.utils.db import drop_db

    targets = targets or TARGETS
    if "domain" in targets:
        print("Initializing storefront domain...")
        storefront.init()
        print("Dropping domain schema...")
        drop_db(storefront)
    if "ledger" in targets:
        ledger = _ledger()
        if ledger is not None:
            print("Dropping ledger schema...")
            ledger.drop_schema()

    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("setup-db", "Create database tables"), ("drop-db", "Drop database tables")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--only",
            choices=TARGETS,
            nargs="*",
            help="Specific schema(s) to act on (default: all)",
        )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases(args.only)
    elif args.command == "drop-db":
        drop_databases(args.only)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

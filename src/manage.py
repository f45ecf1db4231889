"""Storefront management CLI.

Usage:
    python src/manage.py setup-db         # Create all tables
    python src/manage.py drop-db          # Drop all tables
    python src/manage.py seed-catalogue   # Load the starter products
    python src/manage.py purge-carts      # Delete cart lines idle beyond CART_TTL_HOURS
"""

import argparse
import sys


def _storefront():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    domain = _storefront()
    print("Creating storefront database schema...")
    touched = setup_db(domain)
    print(f"  schema ready ({', '.join(touched) or 'no relational provider configured'}).")


def drop_database():
    from storefront.utils.db import drop_db

    domain = _storefront()
    print("Dropping storefront database schema...")
    touched = drop_db(domain)
    print(f"  schema dropped ({', '.join(touched) or 'no relational provider configured'}).")


def seed_catalogue():
    from storefront.catalogue.product import seed_catalogue as seed

    domain = _storefront()
    with domain.domain_context():
        added = seed()
    print(f"Added {added} product(s) to the catalogue.")


def purge_carts(ttl_hours=None):
    from storefront.cart.expiry import purge_expired_lines

    domain = _storefront()
    with domain.domain_context():
        purged = purge_expired_lines(ttl_hours=ttl_hours)
    print(f"Purged {purged} expired cart line(s).")


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("seed-catalogue", help="Load the starter product catalogue")

    purge_parser = subparsers.add_parser("purge-carts", help="Delete idle cart lines")
    purge_parser.add_argument(
        "--ttl-hours",
        type=int,
        default=None,
        help="Idle hours before a line expires (default: CART_TTL_HOURS)",
    )

    args = parser.parse_args()

    from storefront.utils.logging import configure_logging

    configure_logging()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-catalogue":
        seed_catalogue()
    elif args.command == "purge-carts":
        purge_carts(args.ttl_hours)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

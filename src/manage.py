"""PizzaStream database management CLI.

Usage:
    python src/manage.py setup-db    # Create all tables
    python src/manage.py drop-db     # Drop all tables
    python src/manage.py seed-demo   # Create a demo branch, zone, staff and menu
"""

import argparse
import json
import sys


def setup_database():
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating database schema...")
    setup_db(ordering)
    print("Done.")


def drop_database():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping database schema...")
    drop_db(ordering)
    print("Done.")


def seed_demo():
    from ordering.domain import ordering
    from ordering.utils.seed import seed_demo as seed

    ordering.init()
    with ordering.domain_context():
        ids = seed()
    print(json.dumps(ids, indent=2))


def main():
    parser = argparse.ArgumentParser(description="PizzaStream database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("seed-demo", help="Create demo branch, zone, couriers, client and menu")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-demo":
        seed_demo()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Storefront ordering management CLI.

Usage:
    python src/manage.py setup-db                        # Create all tables
    python src/manage.py drop-db                         # Drop all tables
    python src/manage.py seed-catalogue products.json    # Load catalogue read model
    python src/manage.py import-checkouts legacy.json    # Upgrade legacy checkouts
"""

import argparse
import json
import sys


def setup_database():
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    providers = setup_db(ordering)
    print(f"  Schema ready ({', '.join(providers) or 'no relational providers'}).")


def drop_database():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    providers = drop_db(ordering)
    print(f"  Schema dropped ({', '.join(providers) or 'no relational providers'}).")


def seed_catalogue(path):
    """Load products from a JSON list of {_id|productId, name, price, images}."""
    from ordering.catalogue.product import upsert_product
    from ordering.domain import ordering

    with open(path) as handle:
        products = json.load(handle)

    ordering.init()
    with ordering.domain_context():
        for product in products:
            product_id = product.get("productId") or product.get("_id") or product.get("id")
            if isinstance(product_id, dict):
                product_id = product_id.get("$oid")
            upsert_product(
                product_id=product_id,
                name=product["name"],
                price=float(product["price"]),
                images=product.get("images") or [],
            )
    print(f"Seeded {len(products)} catalogue products.")


def import_checkouts(path):
    from ordering.checkout.migration import import_legacy_checkouts, load_legacy_export
    from ordering.domain import ordering

    documents = load_legacy_export(path)

    ordering.init()
    with ordering.domain_context():
        imported, skipped = import_legacy_checkouts(documents)
    print(f"Imported {imported} checkouts, skipped {skipped}.")


def main():
    parser = argparse.ArgumentParser(description="Storefront ordering management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    seed_parser = subparsers.add_parser("seed-catalogue", help="Load the catalogue read model")
    seed_parser.add_argument("path", help="JSON file with a list of products")

    import_parser = subparsers.add_parser("import-checkouts", help="Upgrade and import legacy checkouts")
    import_parser.add_argument("path", help="JSON export (array or one document per line)")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-catalogue":
        seed_catalogue(args.path)
    elif args.command == "import-checkouts":
        import_checkouts(args.path)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

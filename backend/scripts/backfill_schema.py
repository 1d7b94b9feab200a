"""Upgrade invoices and payments stored under an older schema version.

Usage: python scripts/backfill_schema.py [--dry-run]
"""

import argparse
import logging

from invoicing.core.database import SessionLocal
from invoicing.services.schema_migration_service import SchemaMigrationService


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the rows that would change without writing",
    )
    args = parser.parse_args()

    db = SessionLocal()
    try:
        result = SchemaMigrationService(db).backfill_legacy_records(dry_run=args.dry_run)
    finally:
        db.close()
    print(f"invoices: {result.invoices_updated}, payments: {result.payments_updated}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    main()

"""Delete stored idempotency responses older than a cutoff.

Usage: python scripts/purge_idempotency_keys.py [MAX_AGE_HOURS]
"""

import logging
import sys

from invoicing.core.database import SessionLocal
from invoicing.repositories.idempotency_repository import IdempotencyRepository

logger = logging.getLogger("purge_idempotency_keys")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    max_age_hours = int(sys.argv[1]) if len(sys.argv) > 1 else 24
    db = SessionLocal()
    try:
        deleted = IdempotencyRepository(db).delete_expired(max_age_hours)
    finally:
        db.close()
    logger.info("Deleted %d idempotency record(s) older than %dh", deleted, max_age_hours)

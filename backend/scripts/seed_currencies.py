"""Create ledger rows for the currencies the business trades in.

Existing currencies are left untouched, so the script can be re-run after
adding a code to the list.

Usage: python scripts/seed_currencies.py [CODE ...]
"""

import logging
import sys

from invoicing.core.database import SessionLocal, init_db
from invoicing.repositories.currency_repository import CurrencyRepository
from invoicing.schemas.currency import CurrencyCreate

logger = logging.getLogger("seed_currencies")

DEFAULT_CURRENCIES = {
    "JPY": "Japanese Yen",
    "USD": "US Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "AUD": "Australian Dollar",
}


def seed(codes: list[str]) -> int:
    init_db()
    db = SessionLocal()
    created = 0
    try:
        repo = CurrencyRepository(db)
        for code in codes:
            code = code.upper()
            if repo.get_by_code(code) is not None:
                logger.info("Currency %s already exists", code)
                continue
            repo.create(CurrencyCreate(code=code, name=DEFAULT_CURRENCIES.get(code, "")))
            logger.info("Created currency %s", code)
            created += 1
    finally:
        db.close()
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    seed(sys.argv[1:] or list(DEFAULT_CURRENCIES))

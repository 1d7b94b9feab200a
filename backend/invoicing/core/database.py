import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from invoicing.core.config import settings
from invoicing.core.errors import ConflictError

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.APP_DATABASE_DSN,
    connect_args=({"check_same_thread": False} if "sqlite" in settings.APP_DATABASE_DSN else {}),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run a block of writes as one transaction.

    Commits when the block finishes and rolls back on any error, so a failed
    operation leaves no partial state behind. A version-counter mismatch on
    flush or commit means another session changed the same rows first and
    surfaces as ``ConflictError``.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.warning("Rolled back on version conflict: %s", exc)
        raise ConflictError(
            "Records were modified by another request; reload and try again"
        ) from exc
    except Exception:
        db.rollback()
        raise


def init_db() -> None:
    """Initialize database tables."""
    import invoicing.models  # noqa: F401  registers every table on Base.metadata

    Base.metadata.create_all(bind=engine)

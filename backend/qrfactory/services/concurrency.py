# Overview: Commit helpers that serialize writers against SQLite's lock and map store errors.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from ..errors import Conflict, StorageFailure


def run_with_retry(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on lock contention.

    Retries on OperationalError ("database is locked"). func must be safe to
    re-run after a rollback.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def commit_or_fail(session, logger, what: str) -> None:
    """
    Commit the current unit of work. On failure everything staged since the
    last commit is rolled back and a ServiceError is raised.
    """
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.warning("Uniqueness violation while trying to %s", what, exc_info=True)
        raise Conflict(f"Could not {what}: conflicting record")
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Storage failure while trying to %s", what)
        raise StorageFailure(f"Could not {what}")

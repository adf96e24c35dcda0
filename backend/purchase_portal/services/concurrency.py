# Overview: Commit and retry helpers shared by every component that writes to the store.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


class DependencyFailure(RuntimeError):
    """The backing store (or another backend) is unreachable or erroring."""
    reason = "dependency_failure"


def run_with_retry(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (locks, dropped connections) and StaleDataError.
    IntegrityError propagates unchanged. Any other SQLAlchemy error, or
    exhausting the attempts, rolls back and raises DependencyFailure so
    nothing is partially applied.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            session.rollback()
            if attempt >= attempts - 1:
                logger.error("Store operation failed after %d attempts: %s", attempts, exc)
                raise DependencyFailure("Data store unavailable") from exc
            time.sleep(backoff_base * (2 ** attempt))
        except IntegrityError:
            # Constraint violations are data conflicts for the caller to map.
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Store operation failed: %s", exc)
            raise DependencyFailure("Data store error") from exc


def commit_with_retry(session, apply, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Stage changes with `apply()` and commit them as one retried unit.

    A rollback discards whatever was staged, so `apply` runs again on every
    attempt. Returns whatever `apply` returns.
    """
    def _op():
        result = apply()
        session.commit()
        return result
    return run_with_retry(session, _op, attempts=attempts, backoff_base=backoff_base)

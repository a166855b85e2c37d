"""Transaction management for database operations.

Provides a context manager that gives a block all-or-nothing semantics,
whether or not the session already has a transaction open.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@contextmanager
def transaction(session: Session) -> Generator[Session, None, None]:
    """
    Run a block atomically.

    If the session has no transaction yet, one is begun and committed at the
    end of the block. If a transaction is already open (for instance the
    request-scoped one), a savepoint is used so that the block rolls back on
    its own without discarding the caller's work.

    Usage:
        with transaction(session):
            session.execute(update(...))
            # Commits (or releases the savepoint) on success,
            # rolls back on exception
    """
    if session.in_transaction():
        savepoint = session.begin_nested()
        logger.debug("Nested transaction (savepoint) started")
        try:
            yield session
        except Exception as exc:
            savepoint.rollback()
            logger.debug(f"Nested transaction rolled back: {type(exc).__name__}")
            raise
        savepoint.commit()
        logger.debug("Nested transaction committed")
        return

    with session.begin():
        logger.debug("Transaction started")
        yield session
    logger.debug("Transaction committed")

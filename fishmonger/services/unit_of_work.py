"""Explicit transaction boundary shared by the record stores.

Synopsis:
`SqlStore.transaction()` opens one unit of work; the yielded `Transaction` is
passed into every store call that must commit or roll back together. Callbacks
registered with `after_commit` run only once the commit succeeded.

Glossary:
- Unit of work: All writes of one engine operation, applied together or not at all.
- After-commit hook: Side effect (SMS dispatch) that must never see uncommitted state.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, TypeVar

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from .errors import ConflictError, OrderServiceError, StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_ERRORS = (OperationalError, InterfaceError)

# Read by the SQLite "begin" listener; write transactions take the database lock up front
WRITE_BEGIN_OPTION = "fishmonger_begin"

# Marks a session that is inside SqlStore.transaction
_UNIT_OF_WORK_KEY = "fishmonger_unit_of_work"


class Transaction:
    """Handle passed into the catalog, party and order stores."""

    def __init__(self, session: Session, operation: str):
        self.session = session
        self.operation = operation
        self._after_commit: List[Callable[[], None]] = []

    def after_commit(self, callback: Callable[[], None]) -> None:
        self._after_commit.append(callback)

    def _run_after_commit(self) -> None:
        callbacks, self._after_commit = self._after_commit, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("After-commit hook failed for %s", self.operation)


class SqlStore:
    """Transaction factory over a SQLAlchemy session source."""

    def __init__(self, session_factory: Callable[[], Session], *, read_retries: int = 1):
        self._session_factory = session_factory
        self.read_retries = max(0, read_retries)

    @property
    def session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def transaction(self, operation: str) -> Iterator[Transaction]:
        """Commit on success, roll back on any error; writes are never retried."""
        session = self._session_factory()
        tx = Transaction(session, operation)
        outermost = _UNIT_OF_WORK_KEY not in session.info
        if outermost:
            _close_read_transaction(session, operation)
        try:
            if outermost:
                session.connection(execution_options={WRITE_BEGIN_OPTION: "immediate"})
                session.info[_UNIT_OF_WORK_KEY] = operation
            yield tx
            session.commit()
        except OrderServiceError:
            session.rollback()
            raise
        except IntegrityError as exc:
            session.rollback()
            logger.warning("Integrity error during %s: %s", operation, exc.orig)
            raise ConflictError(f"Could not {operation}: the change conflicts with existing records.") from exc
        except _TRANSIENT_ERRORS as exc:
            session.rollback()
            logger.error("Storage failure during %s: %s", operation, exc)
            raise StoreUnavailableError(operation, exc) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            if outermost:
                session.info.pop(_UNIT_OF_WORK_KEY, None)
        tx._run_after_commit()

    def read(self, operation: str, reader: Callable[[Session], T]) -> T:
        """Run an idempotent read, retrying once on a transient storage failure."""
        attempt = 0
        while True:
            session = self._session_factory()
            try:
                return reader(session)
            except _TRANSIENT_ERRORS as exc:
                session.rollback()
                attempt += 1
                if attempt > self.read_retries:
                    logger.error("Storage failure during %s after %s attempt(s): %s", operation, attempt, exc)
                    raise StoreUnavailableError(operation, exc) from exc
                logger.warning("Transient storage failure during %s; retrying (%s)", operation, exc)


def _close_read_transaction(session: Session, operation: str) -> None:
    """End a transaction left open by earlier reads so the write begins its own.

    Joining it would keep SQLite's deferred BEGIN instead of BEGIN IMMEDIATE.
    """
    if not session.in_transaction():
        return
    if session.new or session.dirty or session.deleted:
        raise RuntimeError(f"Cannot {operation}: the session holds changes made outside a unit of work.")
    session.commit()

# Overview: Relational store adapter; the single path through which core state is read or written.

"""
Store adapter over the request-scoped SQLAlchemy session.

Invariants:
- Statements are fixed parameterized templates (sqlalchemy.text); callers
  never interpolate input into SQL.
- execute() gives no atomicity across statements. Callers that need it
  open transaction(), which commits on success and rolls back on ANY
  exception before re-raising.
- Driver errors never escape as SQLAlchemyError; they surface as
  StoreFailure with the original exception chained.
- No retries happen here. A retried checkout could reserve stock twice.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

from flask import current_app, g
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, scoped_session

from ..extensions import db


class StoreFailure(Exception):
    """Connectivity, constraint or commit failure; the transaction has been rolled back."""


@dataclass
class StatementResult:
    rows: list[dict] = field(default_factory=list)
    row_count: int = 0

    def first(self) -> dict | None:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        row = self.first()
        if row is None:
            return None
        return next(iter(row.values()))


class StoreAdapter:
    """
    Executes statements on one session / connection.

    Bound to db.session for live requests (see get_store); tests may pass
    any Session or subclass this to inject failures. A scoped_session
    registry is resolved to the Session of the current scope, since the
    registry proxy lacks Session.in_transaction().
    """

    def __init__(self, session: Session | scoped_session):
        if isinstance(session, scoped_session):
            session = session()
        self.session = session
        self._transaction_depth = 0

    @property
    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    def execute(self, statement: str, params: dict | None = None) -> StatementResult:
        start = time.perf_counter()
        try:
            result = self.session.execute(text(statement), params or {})
            if result.returns_rows:
                rows = [dict(row._mapping) for row in result]
                outcome = StatementResult(rows=rows, row_count=len(rows))
            else:
                outcome = StatementResult(rows=[], row_count=result.rowcount)
        except SQLAlchemyError as exc:
            if not self.in_transaction:
                # No unit of work owns this session; do not leave it aborted
                self.session.rollback()
            raise StoreFailure("Statement failed") from exc

        if current_app.config.get("LOG_SQL"):
            current_app.logger.debug(
                "executed query: %s duration_ms=%.2f rows=%s",
                " ".join(statement.split()),
                (time.perf_counter() - start) * 1000,
                outcome.row_count,
            )
        return outcome

    @contextmanager
    def transaction(self) -> Iterator["StoreAdapter"]:
        """
        One unit of work: every statement inside commits together or not at all.

        Nested use joins the outer transaction; only the outermost scope
        commits or rolls back.

        NOTE: entering the outermost scope first commits whatever the
        session already holds (pending ORM objects, earlier writes). That
        prior work is durable before the unit starts and is NOT undone if
        the unit rolls back.
        """
        if self.in_transaction:
            self._transaction_depth += 1
            try:
                yield self
            finally:
                self._transaction_depth -= 1
            return

        try:
            # Close out prior session state; commit() flushes pending objects too
            self.session.commit()
            if self.dialect_name == "sqlite":
                # SQLite has no row locks; take the write lock up front so two
                # checkouts cannot interleave between check and decrement.
                self.session.execute(text("BEGIN IMMEDIATE"))
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreFailure("Could not begin transaction") from exc

        self._transaction_depth = 1
        try:
            yield self
            self.session.commit()
        except BaseException as exc:
            self.session.rollback()
            current_app.logger.warning("Transaction rolled back: %s", type(exc).__name__)
            if isinstance(exc, SQLAlchemyError):
                raise StoreFailure("Transaction failed") from exc
            raise
        finally:
            self._transaction_depth = 0


def get_store() -> StoreAdapter:
    """Store adapter for the current app context (one per request)."""
    store = g.get("store_adapter")
    if store is None:
        store = StoreAdapter(db.session)
        g.store_adapter = store
    return store

# Overview: Row-locking helper for ORM reads that precede a write in the same transaction.

from __future__ import annotations


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the store adapter's
    BEGIN IMMEDIATE already holds the write lock.
    """
    return query.with_for_update()

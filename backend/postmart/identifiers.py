from __future__ import annotations

import uuid


def new_id() -> str:
    """Opaque primary key for every entity (UUID4 string, portable across SQLite/PostgreSQL)."""
    return str(uuid.uuid4())

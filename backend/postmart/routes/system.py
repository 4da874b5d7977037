# backend/postmart/routes/system.py
"""
System health endpoint.

Checks database connectivity through the store adapter.
"""

import time
from flask import Blueprint, current_app

from ..services.store_adapter import StoreFailure, get_store
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a trivial statement.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        get_store().execute("SELECT 1")
    except StoreFailure as exc:
        current_app.logger.warning("Database health check failed: %s", exc.__cause__)
        return {"status": "unhealthy", "error": "database unreachable"}

    return {
        "status": "healthy",
        "response_time_ms": round((time.time() - start_time) * 1000, 2),
    }


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "status": "ok" if healthy else "degraded",
        "checked_at": to_utc_z(utcnow()),
        "database": database,
    }
    return body, 200 if healthy else 503

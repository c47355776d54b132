# backend/retailpos/routes/system.py
"""
System health endpoint.

Reports database connectivity and whether the store settings singleton has
been initialised (flask system init).
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text
from ..extensions import db
from ..models import StoreSettings
from ..services.invoice_service import SETTINGS_ID
from retailpos.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and the settings row.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        settings_ready = db.session.get(StoreSettings, SETTINGS_ID) is not None

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy" if settings_ready else "degraded",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "settings_initialized": settings_ready,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy, or degraded (settings not initialised yet)
    - 503: database unreachable
    """
    start_time = time.time()
    database_health = check_database_health()

    http_status = 503 if database_health["status"] == "unhealthy" else 200

    response = {
        "status": database_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
        }
    }

    return response, http_status

"""
Health check blueprint.

Endpoints:
    GET /health/ready  - simple 200 for load balancers
    GET /health/live   - detailed health (session store, save dir, drive, DB)
"""

import logging
import os
import time

from flask import Blueprint, current_app, jsonify

from complaint_flow.core.exceptions import CloudDriveError
from complaint_flow.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe - always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    ext = current_app.extensions["complaint_flow"]
    checks = {}
    overall = True

    # ── Session store ────────────────────────────────────────────────
    checks["sessions"] = {"status": "ok", "active": ext["store"].count()}

    # ── Save directory ───────────────────────────────────────────────
    save_dir = ext["materializer"].save_dir
    if os.path.isdir(save_dir) and os.access(save_dir, os.W_OK):
        checks["save_dir"] = {"status": "ok", "path": save_dir}
    elif not os.path.exists(save_dir):
        # Created lazily on first save
        checks["save_dir"] = {"status": "missing", "path": save_dir}
    else:
        checks["save_dir"] = {"status": "error", "path": save_dir, "detail": "not writable"}
        overall = False
        logger.error("Health check - save dir not writable: %s", save_dir)

    # ── Cloud drive ──────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        folders = ext["drive"].list_root_folders()
        drive_ms = (time.perf_counter() - t0) * 1000
        checks["cloud_drive"] = {"status": "ok", "folders": len(folders),
                                 "latency_ms": round(drive_ms, 1)}
    except CloudDriveError as exc:
        # Drive is optional - the workflow renders an inline error instead
        checks["cloud_drive"] = {"status": "unavailable", "detail": str(exc)}

    # ── Database (session snapshots) ─────────────────────────────────
    if current_app.config.get("SESSION_PERSISTENCE_ENABLED"):
        try:
            t0 = time.perf_counter()
            db.session.execute(db.text("SELECT 1"))
            db_ms = (time.perf_counter() - t0) * 1000
            checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
        except Exception as exc:
            checks["database"] = {"status": "error", "detail": str(exc)}
            overall = False
            logger.error("Health check - database failed: %s", exc)
    else:
        checks["database"] = {"status": "skipped", "detail": "session persistence disabled"}

    checks["app"] = {
        "name": "Complaint Workflow Server",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code

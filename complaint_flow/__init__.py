"""
Complaint Workflow Server
Flask Application Factory.

Usage:
    from complaint_flow import create_app
    app = create_app()                                   # defaults to "development"
    app = create_app("testing", {"SAVE_DIR": tmp_path})  # explicit config + overrides
"""

import logging
import os
import secrets
from datetime import timedelta

from flask import Flask, redirect, render_template, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from complaint_flow.config import config
from complaint_flow.core.exceptions import DocumentStorageError, MalformedRequestError
from complaint_flow.integrations.cloud_drive import LocalCloudDrive
from complaint_flow.middleware.logging_config import configure_logging
from complaint_flow.middleware.rate_limiter import init_rate_limits
from complaint_flow.middleware.session_context import DEFAULT_USERNAME, init_session_context
from complaint_flow.middleware.timing import init_request_timing
from complaint_flow.models import db
from complaint_flow.services.document_materializer import DocumentMaterializer
from complaint_flow.services.document_processor import FcraDocumentProcessor
from complaint_flow.services.session_persistence import SnapshotPersistence
from complaint_flow.services.session_store import SessionStore
from complaint_flow.services.step_dispatcher import PageData, StepDispatcher
from complaint_flow.utils.errors import E, api_error
from complaint_flow.utils.helpers import format_size

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit - applied per endpoint
    storage_uri=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization"]


def _wants_json() -> bool:
    return request.path == "/ui/save-document" or request.path.startswith("/api/")


def _build_services(app):
    """Wire the workflow collaborators and register them on the app."""
    persistence = None
    if app.config.get("SESSION_PERSISTENCE_ENABLED"):
        persistence = SnapshotPersistence(app)

    ttl = timedelta(seconds=app.config["SESSION_TTL_SECONDS"])
    sweep_seconds = app.config.get("SESSION_SWEEP_INTERVAL_SECONDS") or 0
    store = SessionStore(
        ttl=ttl,
        sweep_interval=timedelta(seconds=sweep_seconds) if sweep_seconds > 0 else None,
        persistence=persistence,
    )

    drive = LocalCloudDrive(app.config["CLOUD_DRIVE_ROOT"])
    processor = FcraDocumentProcessor(drive=drive, templates_dir=app.config["TEMPLATES_DIR"])
    materializer = DocumentMaterializer(
        app.config["SAVE_DIR"],
        legacy_timestamp=app.config.get("LEGACY_DOCUMENT_TIMESTAMP"),
    )
    dispatcher = StepDispatcher(drive, processor, materializer)

    app.extensions["complaint_flow"] = {
        "store": store,
        "drive": drive,
        "processor": processor,
        "materializer": materializer,
        "dispatcher": dispatcher,
    }
    return store


def create_app(config_name=None, overrides=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.
        overrides: Optional mapping applied on top of the config class
                   (tests point SAVE_DIR / CLOUD_DRIVE_ROOT at tmp dirs).

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(
        __name__,
        instance_relative_config=True,
        static_folder="../static",
        template_folder="../templates",
    )
    app.config.from_object(config[config_name]())
    if overrides:
        app.config.update(overrides)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    origins = "*" if not cors_origins or cors_origins == "*" else [
        o.strip() for o in cors_origins.split(",") if o.strip()
    ]
    CORS(app, origins=origins, methods=CORS_METHODS, allow_headers=CORS_HEADERS,
         send_wildcard=origins == "*")

    # ── Snapshot table (CREATE IF NOT EXISTS) ────────────────────────────
    if app.config.get("SESSION_PERSISTENCE_ENABLED"):
        from complaint_flow.models import session_snapshot as _snapshot_models  # noqa: F401
        with app.app_context():
            try:
                db.create_all()
                app.logger.info("db.create_all() completed successfully")
            except Exception as e:
                app.logger.warning("db.create_all() failed: %s", e)

    # ── Workflow services ────────────────────────────────────────────────
    store = _build_services(app)

    # ── Preflight short-circuit (CORS headers added by Flask-CORS) ───────
    @app.before_request
    def _preflight():
        if request.method == "OPTIONS":
            return "", 204
        return None

    # ── Request timing + session context middleware ──────────────────────
    init_request_timing(app)
    init_session_context(app)

    # ── Blueprints ───────────────────────────────────────────────────────
    from complaint_flow.blueprints.health_bp import health_bp
    from complaint_flow.blueprints.workflow_bp import workflow_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(workflow_bp)

    app.add_template_filter(format_size, "format_size")

    # ── Pages ────────────────────────────────────────────────────────────
    @app.route("/")
    def index():
        cookie_name = app.config["SESSION_COOKIE_NAME_TOKEN"]
        if not request.cookies.get(cookie_name):
            return redirect("/login", code=302)
        page = PageData(username=DEFAULT_USERNAME)
        return render_template("index.html", page=page)

    @app.route("/login")
    def login_page():
        return render_template("login.html")

    @app.route("/login", methods=["POST"])
    def login_submit():
        """Issue a fresh opaque session token and enter the workflow."""
        response = redirect("/", code=302)
        response.set_cookie(
            app.config["SESSION_COOKIE_NAME_TOKEN"],
            secrets.token_urlsafe(32),
            max_age=app.config["SESSION_TOKEN_MAX_AGE"],
            httponly=True,
            samesite="Lax",
        )
        return response

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(MalformedRequestError)
    def malformed_request(e):
        logger.warning("Malformed request on %s: %s", request.path, e)
        details = {"field": e.field} if e.field else None
        return api_error(E.VALIDATION_REQUIRED, str(e), details=details)

    @app.errorhandler(DocumentStorageError)
    def storage_error(e):
        logger.error("Document storage failure on %s: %s (path=%s)", request.path, e, e.path)
        if _wants_json():
            return api_error(E.STORAGE, str(e))
        return f"<h1>500 - Internal Server Error</h1><p>{e}</p>", 500

    @app.errorhandler(404)
    def not_found(e):
        if _wants_json():
            return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})
        return "<h1>404 - Not Found</h1>", 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        if _wants_json():
            return api_error(E.INTERNAL, "Internal server error")
        return "<h1>500 - Internal Server Error</h1><p>An unexpected error occurred.</p>", 500

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests",
                         details={"retry_after": e.description})

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    # ── Session sweeper ──────────────────────────────────────────────────
    if app.config.get("SESSION_SWEEPER_ENABLED"):
        store.start_sweeper()

    return app

"""
Session context middleware.

Resolves the workflow session id for every request and exposes the app's
SessionStore on ``flask.g`` so views and services never reach for a
module-level store.

Resolution:
    - ``session_token`` cookie present   → that value
    - absent                             → ``"temp_session"``
    - ``X-Session-Token`` header present and different from the cookie
      → warning logged, request continues with the cookie value

The ``/`` redirect for a missing cookie is handled by the index view.
"""

import logging

from flask import Flask, current_app, g, request

logger = logging.getLogger(__name__)

TEMP_SESSION_ID = "temp_session"
SESSION_HEADER = "X-Session-Token"
DEFAULT_USERNAME = "User"


def resolve_session_id(cookie_name: str) -> str:
    token = request.cookies.get(cookie_name) or ""
    return token or TEMP_SESSION_ID


def init_session_context(app: Flask):
    """Register the before_request hook that populates g.session_*."""

    @app.before_request
    def _bind_session():
        if request.method == "OPTIONS" or request.path.startswith("/static"):
            return None

        cookie_name = current_app.config["SESSION_COOKIE_NAME_TOKEN"]
        session_id = resolve_session_id(cookie_name)

        header_token = request.headers.get(SESSION_HEADER)
        if header_token and header_token != session_id:
            logger.warning("Session token mismatch: cookie=%s, header=%s",
                           session_id, header_token)

        g.session_id = session_id
        g.session_store = current_app.extensions["complaint_flow"]["store"]
        g.username = DEFAULT_USERNAME
        return None

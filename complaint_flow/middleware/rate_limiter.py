"""
Rate limiting configuration.

Applies per-endpoint limits using Flask-Limiter. The Limiter instance is
created in complaint_flow/__init__.py with no default limits; this module
wraps the endpoints that write to disk or touch credentials.

Usage:
    from complaint_flow.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# endpoint → limit string (per remote IP)
ENDPOINT_LIMITS = {
    "workflow.save_document": "30/minute",
    "workflow.icloud_auth": "10/minute",
}


def init_rate_limits(app, limiter):
    """
    Apply rate limits to workflow endpoints.

    Limits (per remote IP):
        - Document save:     30/minute
        - Drive connection:  10/minute
        - Health check:      exempt

    Rate limiting is disabled in testing mode or when RATELIMIT_ENABLED
    is false.
    """

    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    for endpoint, limit in ENDPOINT_LIMITS.items():
        view = app.view_functions.get(endpoint)
        if view is None:
            logger.warning("Rate limit target %s not registered", endpoint)
            continue
        app.view_functions[endpoint] = limiter.limit(limit)(view)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: save 30/min, auth 10/min")

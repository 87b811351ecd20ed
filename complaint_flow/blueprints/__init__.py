"""
Complaint Workflow Server
Blueprint registry and shared request helpers.
"""

from flask import request

from complaint_flow.core.exceptions import MalformedRequestError


def require_value(source, name: str, message: str) -> str:
    """Return a non-empty form/query value or raise MalformedRequestError (→ 400).

    Args:
        source: ``request.form`` or ``request.args``.
        name: Field name.
        message: Error shown to the client when the field is missing.
    """
    value = (source.get(name) or "").strip()
    if not value:
        raise MalformedRequestError(message, field=name)
    return value


def form_list(name: str) -> list[str]:
    """Multi-valued form field; accepts both ``name`` and ``name[]`` keys."""
    values = request.form.getlist(name) + request.form.getlist(f"{name}[]")
    return [v for v in (s.strip() for s in values) if v]

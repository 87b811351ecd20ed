"""Shared utility functions used by services, blueprints and templates.

client_key:          "Eman Youssef" → "eman_youssef" (document filenames)
document_basenames:  "/Cases/Smith/a.pdf" → "a.pdf"
unique_in_order:     de-duplicate a selection, first occurrence wins
format_size:         Jinja filter for byte counts
parse_step:          /ui/step/<s> path segment → int in 0..3
"""

import logging

logger = logging.getLogger(__name__)

MIN_STEP = 0
MAX_STEP = 3


def client_key(client_name):
    """Lower-case the client name and replace spaces with underscores."""
    return client_name.replace(" ", "_").lower()


def document_basename(path):
    """Return the last ``/``-separated segment of a drive path."""
    return path.split("/")[-1]


def document_basenames(paths):
    """Apply :func:`document_basename` to every selected document path."""
    return [document_basename(p) for p in paths]


def unique_in_order(items):
    """Drop duplicates and blanks while keeping the user's selection order."""
    seen = set()
    result = []
    for item in items:
        if not item or item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def format_size(size):
    """Human-readable byte size (B / KB / MB)."""
    if size is None:
        return ""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def parse_step(value):
    """Parse a step path segment.

    Non-numeric or out-of-range values fall back to step 0 - the request is
    treated as a fresh start rather than rejected.
    """
    try:
        step = int(value)
    except (TypeError, ValueError):
        logger.debug("Non-numeric step %r, using step 0", value)
        return MIN_STEP
    if step < MIN_STEP or step > MAX_STEP:
        logger.debug("Out-of-range step %d, using step 0", step)
        return MIN_STEP
    return step

"""Complaint preview built from the FCRA section payload.

The same sections feed the preview fragment and the HTML the document
materializer writes when no saved complaint exists yet.
"""

from __future__ import annotations

import logging
from datetime import date

from complaint_flow.fixtures import fcra
from complaint_flow.models.analysis import PreviewDocument, PreviewSection

logger = logging.getLogger(__name__)


def format_long_date(day: date) -> str:
    """``date(2025, 6, 5)`` → ``"June 5, 2025"``."""
    return f"{day:%B} {day.day}, {day.year}"


def build_preview(selected_filenames: list[str] | None, today: date | None = None) -> PreviewDocument:
    source_docs = list(selected_filenames or [])
    if not source_docs:
        logger.warning("No selected documents for preview, using default source documents")
        source_docs = list(fcra.DEFAULT_SOURCE_DOCS)

    preview = PreviewDocument(
        title=fcra.PREVIEW_TITLE,
        generated_date=format_long_date(today or date.today()),
        source_docs=source_docs,
        content=[
            PreviewSection(title=section["title"], content=section["content"])
            for section in fcra.PREVIEW_SECTIONS
        ],
    )
    logger.debug("Built preview with %d sections for %s", len(preview.content), source_docs)
    return preview

"""Legal analysis shown on the step-3 review page.

The analysis content is the fixed FCRA payload in ``fixtures/fcra.py``; only
``source_docs`` reflects the user's selection.
"""

from __future__ import annotations

import logging

from complaint_flow.fixtures import fcra
from complaint_flow.models.analysis import CauseOfAction, LegalAnalysis, LegalViolation

logger = logging.getLogger(__name__)


def analyze(selected_filenames: list[str] | None) -> LegalAnalysis:
    """Build the legal analysis for the given document filenames.

    An empty selection falls back to the default FCRA document set.
    """
    source_docs = list(selected_filenames or [])
    if not source_docs:
        logger.debug("No documents selected, using default source documents")
        source_docs = list(fcra.DEFAULT_SOURCE_DOCS)

    return LegalAnalysis(
        extraction_date=fcra.EXTRACTION_DATE,
        source_docs=source_docs,
        causes_of_action=[
            CauseOfAction(**{**item, "elements": list(item["elements"])})
            for item in fcra.CAUSES_OF_ACTION
        ],
        legal_violations=[LegalViolation(**item) for item in fcra.LEGAL_VIOLATIONS],
    )

"""
Legal-analysis and preview value types rendered on step 3 and in the
document preview.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CauseOfAction:
    title: str
    description: str
    statutory_basis: str
    source_doc: str
    elements: list[str] = field(default_factory=list)


@dataclass
class LegalViolation:
    statute: str
    violation_type: str
    description: str
    source_doc: str
    penalties: str


@dataclass
class LegalAnalysis:
    extraction_date: str
    source_docs: list[str]
    causes_of_action: list[CauseOfAction] = field(default_factory=list)
    legal_violations: list[LegalViolation] = field(default_factory=list)


@dataclass
class HighlightedText:
    """Span of section text attributed to a source document."""

    text: str
    source_doc: str
    start_pos: int
    end_pos: int


@dataclass
class PreviewSection:
    title: str
    content: str
    highlights: list[HighlightedText] = field(default_factory=list)


@dataclass
class PreviewDocument:
    title: str
    generated_date: str
    source_docs: list[str]
    content: list[PreviewSection] = field(default_factory=list)

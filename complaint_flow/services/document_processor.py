"""
Template catalog and document processor for FCRA complaints.

The step dispatcher depends on the TemplateCatalog interface:
  - list_templates()                → templates offered in step 2
  - process(doc_ids, template_id)   → (ProcessingResult, CaseModel)

FcraDocumentProcessor is the default catalog. ``process`` works per selected
document:
  1. classify the content type from the filename
     (attorney_notes, adverse_action, civil_cover_sheet, summons,
      summons_equifax, complaint_form, unknown)
  2. read the text of ``.txt`` documents through the cloud drive; other
     formats contribute their filename metadata only
  3. run the extractor for the content type (regex field extraction)
Afterwards the missing-content list and data coverage are computed from the
populated case fields. Output is deterministic for identical inputs.

Errors:
  ProcessingError - no documents, or no template id. Ids outside the
  catalog are processed with the same FCRA extraction rules.
  Unreadable documents are logged and processed as metadata only.
"""

from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path

from complaint_flow.core.exceptions import CloudDriveError, ProcessingError
from complaint_flow.integrations.cloud_drive import document_type
from complaint_flow.models.documents import (
    CaseModel,
    MissingContent,
    ProcessedDocument,
    ProcessingResult,
    Template,
)
from complaint_flow.utils.helpers import document_basename, unique_in_order

logger = logging.getLogger(__name__)

TEMPLATES = (
    ("fcra-credit-card-fraud", "FCRA Complaint - Credit Card Fraud",
     "For cases involving fraudulent credit card transactions", "Complaint_Final.docx"),
    ("fcra-identity-theft", "FCRA Complaint - Identity Theft",
     "For cases involving wider identity theft issues", "fcra_identity_theft.docx"),
    ("fcra-inaccurate-reporting", "FCRA Complaint - Inaccurate Reporting",
     "For cases involving credit report errors", "fcra_inaccurate_reporting.docx"),
)

DEFAULT_RESIDENCE = "New York, New York"
DEFAULT_JURISDICTION = "SOUTHERN DISTRICT OF NEW YORK"
UNASSIGNED_CASE_NUMBER = "[TO BE ASSIGNED]"

CREDIT_BUREAU_DEFENDANTS = (
    "EXPERIAN INFORMATION SOLUTIONS, INC.",
    "TRANS UNION LLC",
    "EQUIFAX INFORMATION SERVICES LLC",
)

# ── Extraction patterns ─────────────────────────────────────────────────────

_NAME_PATTERNS = [
    re.compile(r"Client:\s*([A-Z][a-z]+\s+[A-Z][a-z]+)"),
    re.compile(r"Case for\s*([A-Z][a-z]+\s+[A-Z][a-z]+)"),
    re.compile(r"([A-Z][a-z]+\s+[A-Z][a-z]+)\s+Case"),
]
_PHONE_PATTERNS = [
    re.compile(r"(\d{3}\.\d{3}\.\d{4})"),
    re.compile(r"(\d{3}-\d{3}-\d{4})"),
    re.compile(r"(\(\d{3}\)\s*\d{3}-\d{4})"),
]
_TRAVEL_PATTERNS = [
    re.compile(r"Travel Dates:\s*([A-Za-z0-9 ,-]+)"),
    re.compile(r"traveling.*in\s+([A-Z][a-z]+)"),
    re.compile(r"while.*was.*in\s+([A-Z][a-z]+)"),
]
_AMOUNT_PATTERNS = [
    re.compile(r"Fraud Amount:\s*\$([0-9,]+)"),
    re.compile(r"\$([0-9,]+)"),
    re.compile(r"([0-9,]+)\s*dollars?"),
]
_BANK_PATTERNS = [
    re.compile(r"Bank:\s*([A-Z][A-Za-z ]+)"),
    re.compile(r"(TD Bank|Chase|Capital One|Citibank|Wells Fargo|Bank of America)"),
]
_CREDIT_IMPACT_PATTERNS = [
    ("denied credit", re.compile(r"denied credit")),
    ("credit reduced", re.compile(r"credit.*reduced")),
    ("credit limit reduced", re.compile(r"credit.*limit.*reduced")),
    ("application denied", re.compile(r"application.*denied")),
]
_BUREAU_NAMES = ("Equifax", "Experian", "Trans Union", "TransUnion")


def _first_match(text: str, patterns) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return ""


def classify_content(filename: str) -> str:
    """Map a document filename to the kind of legal document it holds."""
    name = filename.lower()
    if "attorney" in name or "atty" in name:
        return "attorney_notes"
    if "adverse" in name or "denial" in name:
        return "adverse_action"
    if "civil" in name and "cover" in name:
        return "civil_cover_sheet"
    if "summons" in name:
        return "summons_equifax" if "equifax" in name else "summons"
    if "complaint" in name:
        return "complaint_form"
    return "unknown"


class TemplateCatalog(ABC):
    """Interface for template catalogs / document processors."""

    @abstractmethod
    def list_templates(self) -> list[Template]:
        """Templates the user can choose from in step 2."""

    @abstractmethod
    def process(self, doc_ids: list[str], template_id: str) -> tuple[ProcessingResult, CaseModel]:
        """Process the selected documents for *template_id*.

        Raises ProcessingError on failure.
        """


class FcraDocumentProcessor(TemplateCatalog):
    """TemplateCatalog for the three FCRA complaint templates.

    Args:
        drive: Cloud-drive adapter used to read document text. Optional;
               without it every document is processed as metadata only.
        templates_dir: Directory holding the template source files.
    """

    def __init__(self, drive=None, templates_dir: str | os.PathLike | None = None) -> None:
        self.drive = drive
        self.templates_dir = Path(templates_dir) if templates_dir else None

    # ── Catalog ──────────────────────────────────────────────────────────

    def list_templates(self) -> list[Template]:
        templates = []
        for template_id, name, desc, filename in TEMPLATES:
            path = str(self.templates_dir / filename) if self.templates_dir else filename
            templates.append(Template(id=template_id, name=name, desc=desc, path=path))
        return templates

    def get_template(self, template_id: str) -> Template | None:
        return next((t for t in self.list_templates() if t.id == template_id), None)

    # ── Processing ───────────────────────────────────────────────────────

    def process(self, doc_ids, template_id):
        docs = unique_in_order(doc_ids or [])
        if not docs:
            raise ProcessingError("No documents selected for processing")
        if not template_id:
            raise ProcessingError("No template selected")
        if self.get_template(template_id) is None:
            logger.warning("Template %s is not in the catalog, applying FCRA extraction rules", template_id)

        logger.info("Processing %d documents with template %s", len(docs), template_id)

        case = CaseModel()
        extracted: dict = {}
        processed: list[ProcessedDocument] = []
        content_types: set[str] = set()

        for doc_path in docs:
            name = document_basename(doc_path)
            content_type = classify_content(name)
            text, size = self._read_text(doc_path)
            processed.append(ProcessedDocument(
                id=f"doc_{len(processed) + 1}",
                name=name,
                type=document_type(name),
                path=doc_path,
                content_type=content_type,
                size=size,
            ))
            content_types.add(content_type)
            self._extract(text, content_type, case, extracted)

        self._complete_case(case)
        missing = self._missing_content(case, content_types)
        coverage = self._data_coverage(case, extracted)

        logger.info("Processing complete: %d documents, %.1f%% data coverage",
                    len(processed), coverage)
        result = ProcessingResult(
            template_id=template_id,
            selected_documents=processed,
            extracted_data=extracted,
            missing_content=missing,
            data_coverage=coverage,
        )
        return result, case

    def _read_text(self, doc_path: str) -> tuple[str, int]:
        """Return (text, size). Only ``.txt`` documents yield text."""
        if self.drive is None or not hasattr(self.drive, "resolve"):
            return "", 0
        try:
            full = self.drive.resolve(doc_path)
        except CloudDriveError as exc:
            logger.debug("Cannot resolve %s on drive: %s", doc_path, exc)
            return "", 0
        if not full.is_file():
            logger.debug("Document %s not found on drive, using metadata only", doc_path)
            return "", 0
        size = full.stat().st_size
        if full.suffix.lower() != ".txt":
            return "", size
        try:
            return full.read_text(encoding="utf-8", errors="replace"), size
        except OSError as exc:
            logger.warning("Could not read %s: %s", full, exc)
            return "", size

    # ── Per content-type extractors ──────────────────────────────────────

    def _extract(self, text: str, content_type: str, case: CaseModel, extracted: dict) -> None:
        if content_type == "attorney_notes":
            self._from_attorney_notes(text, case, extracted)
        elif content_type == "adverse_action":
            self._from_adverse_action(text, case, extracted)
        elif content_type == "civil_cover_sheet":
            extracted["civilCoverSheet"] = True
        elif content_type in ("summons", "summons_equifax"):
            self._from_summons(text, case, extracted)
        else:
            logger.debug("No extractor for content type %s", content_type)

    @staticmethod
    def _from_attorney_notes(text, case, extracted):
        fields = (
            ("client_name", "clientName", _NAME_PATTERNS, ""),
            ("contact_info", "contactInfo", _PHONE_PATTERNS, ""),
            ("travel_location", "travelLocation", _TRAVEL_PATTERNS, ""),
            ("fraud_amount", "fraudAmount", _AMOUNT_PATTERNS, "$"),
            ("financial_institution", "financialInstitution", _BANK_PATTERNS, ""),
        )
        for attr, key, patterns, prefix in fields:
            value = _first_match(text, patterns)
            if value:
                value = prefix + value
                setattr(case, attr, value)
                extracted[key] = value
                logger.debug("Extracted %s: %s", key, value)
        extracted["attorneyNotes"] = True

    @staticmethod
    def _from_adverse_action(text, case, extracted):
        lowered = text.lower()
        impacts = [label for label, pattern in _CREDIT_IMPACT_PATTERNS if pattern.search(lowered)]
        if impacts:
            case.credit_impact = ", ".join(impacts)
            extracted["creditImpact"] = case.credit_impact
        if not case.credit_bureau_disputes:
            case.credit_bureau_disputes = ["Experian", "Equifax", "Trans Union"]
        extracted["adverseAction"] = True

    @staticmethod
    def _from_summons(text, case, extracted):
        bureaus = [b for b in _BUREAU_NAMES if b in text]
        if bureaus:
            case.credit_bureau_disputes = bureaus
            extracted["creditBureaus"] = bureaus
        extracted["summons"] = True

    # ── Case completion / scoring ────────────────────────────────────────

    @staticmethod
    def _complete_case(case: CaseModel) -> None:
        case.residence_location = case.residence_location or DEFAULT_RESIDENCE
        case.court_jurisdiction = DEFAULT_JURISDICTION
        case.case_number = UNASSIGNED_CASE_NUMBER
        case.defendants = list(CREDIT_BUREAU_DEFENDANTS)
        if case.financial_institution:
            case.defendants.append(case.financial_institution.upper())
        if case.fraud_amount:
            try:
                case.estimated_damages = float(case.fraud_amount.lstrip("$").replace(",", ""))
            except ValueError:
                logger.debug("Unparseable fraud amount %r", case.fraud_amount)

    @staticmethod
    def _missing_content(case: CaseModel, content_types: set[str]) -> list[MissingContent]:
        missing = []
        required_fields = (
            (case.client_name, "Client Name", "Client name is required for legal documents"),
            (case.contact_info, "Contact Information", "Client contact information"),
            (case.fraud_amount, "Fraud Amount", "Amount of fraudulent charges"),
            (case.financial_institution, "Financial Institution",
             "Bank or credit card company involved"),
        )
        for value, label, description in required_fields:
            if not value:
                missing.append(MissingContent(label, description, "Attorney Notes"))
        if "attorney_notes" not in content_types:
            missing.append(MissingContent(
                "Attorney Notes", "Attorney notes containing case details",
                "Attorney Notes Document",
            ))
        if "adverse_action" not in content_types and not case.credit_impact:
            missing.append(MissingContent(
                "Credit Impact Details", "Documentation of credit denials or impacts",
                "Adverse Action Letters",
            ))
        return missing

    @staticmethod
    def _data_coverage(case: CaseModel, extracted: dict) -> float:
        checks = (
            case.client_name,
            case.contact_info,
            case.fraud_amount,
            case.financial_institution,
            case.travel_location,
            case.credit_impact,
            case.credit_bureau_disputes,
            extracted.get("attorneyNotes"),
            extracted.get("adverseAction"),
            extracted.get("civilCoverSheet"),
        )
        populated = sum(1 for value in checks if value)
        return populated / len(checks) * 100

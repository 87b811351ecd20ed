"""
Drive, template and processing value types.

CloudItem        - a folder or document listed by a cloud-drive adapter
Template         - a complaint template offered in step 2
ProcessingResult - what the processor extracted from the selected documents
CaseModel        - structured client/case data derived from the same run

ProcessingResult and CaseModel are produced together by
``TemplateCatalog.process`` and are always stored and cleared as a pair.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime


@dataclass
class CloudItem:
    """A folder or document in the cloud drive. ``path`` is drive-relative."""

    id: str
    name: str
    path: str
    size: int = 0
    modified: datetime | None = None
    type: str = "unknown"
    is_directory: bool = False


@dataclass
class Template:
    id: str
    name: str
    desc: str
    path: str = ""


@dataclass
class ProcessedDocument:
    id: str
    name: str
    type: str
    path: str
    content_type: str
    size: int = 0


@dataclass
class MissingContent:
    field: str
    description: str
    source: str
    required: bool = True


@dataclass
class ProcessingResult:
    """Outcome of processing the selected documents against a template.

    ``data_coverage`` is a percentage (0-100) of required case fields that
    could be populated.
    """

    template_id: str
    selected_documents: list[ProcessedDocument] = field(default_factory=list)
    extracted_data: dict = field(default_factory=dict)
    missing_content: list[MissingContent] = field(default_factory=list)
    data_coverage: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CaseModel:
    """Client and case facts used to populate the complaint."""

    client_name: str = ""
    contact_info: str = ""
    residence_location: str = ""
    court_jurisdiction: str = ""
    case_number: str = ""
    financial_institution: str = ""
    credit_limit: str = ""
    travel_location: str = ""
    fraud_amount: str = ""
    fraud_details: str = ""
    police_report_filed: bool = False
    credit_bureau_disputes: list[str] = field(default_factory=list)
    defendants: list[str] = field(default_factory=list)
    credit_impact: str = ""
    estimated_damages: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)

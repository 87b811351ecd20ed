"""
WorkflowState - per-session progress through the four-step complaint flow.

Steps:
    0  Cloud drive setup (connect, pick parent folder, pick case folder)
    1  Document selection
    2  Template selection
    3  Review (processing result, case model, legal analysis)

Invariants kept by the mutator methods below:
    - selected_template set            ⇒ at least one selected document
    - processing_result is None        ⇔ case_model is None
    - (re)assigning the template or changing the document set clears
      processing_result and case_model in the same update
    - disconnect() drops the parent / case folder selection

Instances are only mutated inside ``SessionStore.update`` closures; readers
get deep copies from ``snapshot()``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone

from complaint_flow.models.documents import CaseModel, ProcessingResult
from complaint_flow.utils.helpers import MAX_STEP, MIN_STEP, unique_in_order


def _utcnow():
    return datetime.now(timezone.utc)


@dataclass
class WorkflowState:
    current_step: int = 0
    cloud_connected: bool = False
    cloud_username: str | None = None
    selected_parent_folder: str | None = None
    selected_case_folder: str | None = None
    selected_documents: list[str] = field(default_factory=list)
    selected_template: str | None = None
    processing_result: ProcessingResult | None = None
    case_model: CaseModel | None = None
    last_updated: datetime = field(default_factory=_utcnow)

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def has_processing(self) -> bool:
        return self.processing_result is not None and self.case_model is not None

    @property
    def is_fresh(self) -> bool:
        """True until the user has picked anything in the workflow.

        A drive connection alone does not count as progress.
        """
        return (
            self.current_step == MIN_STEP
            and not self.selected_parent_folder
            and not self.selected_case_folder
            and not self.selected_documents
            and not self.selected_template
        )

    # ── Step 0 ───────────────────────────────────────────────────────────

    def connect(self, username: str | None) -> None:
        self.cloud_connected = True
        self.cloud_username = username or None

    def disconnect(self) -> None:
        """Drop the drive connection and every folder chosen through it."""
        self.cloud_connected = False
        self.cloud_username = None
        self.selected_parent_folder = None
        self.selected_case_folder = None

    def select_parent_folder(self, folder_path: str) -> None:
        self.selected_parent_folder = folder_path or None

    def select_case_folder(self, folder_path: str) -> None:
        self.selected_case_folder = folder_path or None
        self.advance_to(1)

    # ── Steps 1-3 ────────────────────────────────────────────────────────

    def advance_to(self, step: int) -> None:
        """Move forward to *step*; never moves backwards."""
        if not MIN_STEP <= step <= MAX_STEP:
            raise ValueError(f"step must be between {MIN_STEP} and {MAX_STEP}, got {step}")
        if step > self.current_step:
            self.current_step = step

    def set_documents(self, documents: list[str]) -> None:
        docs = unique_in_order(documents)
        if docs != self.selected_documents:
            self.clear_processing()
        self.selected_documents = docs
        if not docs:
            self.selected_template = None

    def select_template(self, template_id: str, documents: list[str]) -> None:
        """Assign template and documents, invalidating derived artifacts."""
        docs = unique_in_order(documents)
        if not template_id:
            raise ValueError("template_id is required")
        if not docs:
            raise ValueError("at least one document is required to select a template")
        self.selected_documents = docs
        self.selected_template = template_id
        self.clear_processing()

    def set_processing(self, result: ProcessingResult, case: CaseModel) -> None:
        if result is None or case is None:
            raise ValueError("processing result and case model are set together")
        self.processing_result = result
        self.case_model = case

    def clear_processing(self) -> None:
        self.processing_result = None
        self.case_model = None

    # ── Copying / serialisation ──────────────────────────────────────────

    def snapshot(self) -> "WorkflowState":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Navigation fields only; derived artifacts regenerate on demand."""
        return {
            "current_step": self.current_step,
            "cloud_connected": self.cloud_connected,
            "cloud_username": self.cloud_username,
            "selected_parent_folder": self.selected_parent_folder,
            "selected_case_folder": self.selected_case_folder,
            "selected_documents": list(self.selected_documents),
            "selected_template": self.selected_template,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowState":
        last_updated = data.get("last_updated")
        state = cls(
            current_step=int(data.get("current_step") or 0),
            cloud_connected=bool(data.get("cloud_connected")),
            cloud_username=data.get("cloud_username") or None,
            selected_parent_folder=data.get("selected_parent_folder") or None,
            selected_case_folder=data.get("selected_case_folder") or None,
            selected_documents=unique_in_order(data.get("selected_documents") or []),
            selected_template=data.get("selected_template") or None,
            last_updated=datetime.fromisoformat(last_updated) if last_updated else _utcnow(),
        )
        if state.selected_template and not state.selected_documents:
            state.selected_template = None
        return state

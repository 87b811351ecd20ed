"""
Step Dispatcher - decides what each workflow request renders.

For a step request the dispatcher reads the session's WorkflowState, decides
whether the user is returning to an earlier step, bumps ``current_step`` when
moving forward, loads the data the step needs from the cloud drive and
template catalog, and falls back (inline error, step-2 override, or a
redirect to step 0) when prerequisites are missing.

The same module hosts the workflow actions (folder selection, document and
template selection, drive connection, preview, document view/edit) so the
blueprint only parses requests and renders outcomes.

Usage:
    outcome = dispatcher.dispatch(store, session_id, 3)
    if outcome.is_redirect:
        ...  # HX-Redirect: outcome.redirect_url
    else:
        render_template(outcome.template, page=outcome.page)

Nothing here imports Flask; collaborators and the session store are passed
in, so every path is unit-testable with fakes.

Error policy:
  - CloudDriveError / ProcessingError are caught here and reified into
    ``PageData.error`` (plus ``retry_action`` where a retry makes sense).
  - PrerequisiteError is raised by the step-3 checks and rendered as an
    override to its ``fallback_step`` with the message in ``PageData.error``.
  - Step overrides never change the persisted ``current_step``.
  - DocumentStorageError from the materializer propagates (HTTP 500).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from complaint_flow.core.exceptions import (
    AdapterError,
    CloudDriveError,
    PrerequisiteError,
    ProcessingError,
)
from complaint_flow.models.analysis import LegalAnalysis, PreviewDocument
from complaint_flow.models.documents import CaseModel, CloudItem, ProcessingResult, Template
from complaint_flow.models.workflow import WorkflowState
from complaint_flow.services.document_materializer import (
    DEFAULT_CLIENT_NAME,
    FILENAME_TIMESTAMP_FORMAT,
)
from complaint_flow.services.legal_analysis import analyze
from complaint_flow.services.preview_generator import build_preview
from complaint_flow.utils.helpers import (
    MAX_STEP,
    MIN_STEP,
    client_key,
    document_basenames,
    unique_in_order,
)

logger = logging.getLogger(__name__)

STEP_WRAPPER = "_step_wrapper.html"
ERROR_FRAGMENT = "_error_fragment.html"
STEP0_REDIRECT = "/ui/step/0"
DEFAULT_USERNAME = "User"


# ═════════════════════════════════════════════════════════════════════════════
# Page data & outcomes
# ═════════════════════════════════════════════════════════════════════════════

@dataclass
class PageData:
    """Everything a step fragment or full page may render."""

    current_step: int = 0
    username: str = DEFAULT_USERNAME
    cloud_connected: bool = False
    selected_parent_folder: str | None = None
    selected_case_folder: str | None = None
    selected_documents: list[str] = field(default_factory=list)
    selected_template: str | None = None
    is_returning_user: bool = False

    folders: list[CloudItem] = field(default_factory=list)
    case_folders: list[CloudItem] = field(default_factory=list)
    parent_folder: str | None = None
    documents: list[CloudItem] = field(default_factory=list)
    templates: list[Template] = field(default_factory=list)

    processing_result: ProcessingResult | None = None
    case_model: CaseModel | None = None
    legal_analysis: LegalAnalysis | None = None
    preview: PreviewDocument | None = None

    document_html: str = ""
    client_name: str = ""
    document_title: str = ""
    document_filename: str = ""
    last_saved: str = ""

    error: str | None = None
    retry_action: str | None = None

    @classmethod
    def from_state(cls, state: WorkflowState, *, step: int | None = None,
                   username: str = DEFAULT_USERNAME, **overrides) -> "PageData":
        page = cls(
            current_step=state.current_step if step is None else step,
            username=username,
            cloud_connected=state.cloud_connected,
            selected_parent_folder=state.selected_parent_folder,
            selected_case_folder=state.selected_case_folder,
            selected_documents=list(state.selected_documents),
            selected_template=state.selected_template,
        )
        for key, value in overrides.items():
            setattr(page, key, value)
        return page


@dataclass(frozen=True)
class StepOutcome:
    """Either a template to render with a page, or a client-side redirect."""

    template: str | None = None
    page: PageData | None = None
    redirect_url: str | None = None

    @classmethod
    def render(cls, template: str, page: PageData) -> "StepOutcome":
        return cls(template=template, page=page)

    @classmethod
    def redirect(cls, url: str) -> "StepOutcome":
        return cls(redirect_url=url)

    @property
    def is_redirect(self) -> bool:
        return self.redirect_url is not None


def error_outcome(message: str, retry_action: str | None = None) -> StepOutcome:
    return StepOutcome.render(ERROR_FRAGMENT, PageData(error=message, retry_action=retry_action))


# ═════════════════════════════════════════════════════════════════════════════
# Dispatcher
# ═════════════════════════════════════════════════════════════════════════════

class StepDispatcher:
    """Step rendering and workflow actions over injected collaborators.

    Args:
        drive: CloudDrive adapter.
        catalog: TemplateCatalog (template list + document processor).
        materializer: DocumentMaterializer for view/edit; optional for
                      callers that never render documents.
    """

    def __init__(self, drive, catalog, materializer=None, clock=None):
        self.drive = drive
        self.catalog = catalog
        self.materializer = materializer
        self._clock = clock or datetime.now

    # ── Step rendering ───────────────────────────────────────────────────

    def dispatch(self, store, session_id: str, step: int, *,
                 username: str = DEFAULT_USERNAME,
                 cloud_connected_hint: bool = False) -> StepOutcome:
        if not isinstance(step, int) or not MIN_STEP <= step <= MAX_STEP:
            logger.debug("Step %r out of range, rendering step 0", step)
            step = MIN_STEP

        if step > MIN_STEP and self._session_missing(store, session_id):
            logger.info("No workflow progress for session %s, redirecting step %d to step 0",
                        session_id, step)
            return StepOutcome.redirect(STEP0_REDIRECT)

        state = store.get(session_id)
        is_returning = state.current_step > step
        logger.debug(
            "Dispatch step=%d current=%d case_folder=%s documents=%d template=%s",
            step, state.current_step, bool(state.selected_case_folder),
            len(state.selected_documents), bool(state.selected_template),
        )

        if step > state.current_step:
            state = store.update(session_id, lambda s: s.advance_to(step))

        page = PageData.from_state(state, step=step, username=username,
                                   is_returning_user=is_returning)
        page.cloud_connected = state.cloud_connected or cloud_connected_hint

        if step == 0:
            self._load_step0(page, state)
        elif step == 1:
            self._load_step1(page, state, is_returning)
        elif step == 2:
            self._load_step2(page, state, is_returning)
        else:
            self._load_step3(page, state, is_returning, store, session_id)
        return StepOutcome.render(STEP_WRAPPER, page)

    @staticmethod
    def _session_missing(store, session_id: str) -> bool:
        if not store.exists(session_id):
            return True
        return store.get(session_id).is_fresh

    def _load_step0(self, page: PageData, state: WorkflowState) -> None:
        if page.cloud_connected:
            try:
                page.folders = self.drive.list_root_folders()
            except CloudDriveError as exc:
                logger.error("Failed to load drive folders: %s", exc)
                page.error = "Could not load iCloud folders. Please try again."
                page.retry_action = "/ui/step/0"
        if state.selected_parent_folder:
            page.parent_folder = state.selected_parent_folder
            try:
                page.case_folders = self.drive.list_subfolders(state.selected_parent_folder)
            except CloudDriveError as exc:
                logger.error("Failed to load case folders from %s: %s",
                             state.selected_parent_folder, exc)

    def _load_step1(self, page: PageData, state: WorkflowState, is_returning: bool) -> None:
        if not state.selected_case_folder and not is_returning:
            logger.warning("Step 1 requested without a case folder selection")
            page.error = "Please select a case folder first."

        if state.selected_case_folder:
            try:
                page.documents = self.drive.list_documents(state.selected_case_folder)
                return
            except CloudDriveError as exc:
                logger.warning("Failed to load documents from case folder %s: %s",
                               state.selected_case_folder, exc)
            failure_message = "Could not load documents. Please check your case folder selection."
        else:
            failure_message = "Could not load documents. Please select a case folder."

        try:
            page.documents = self._fallback_documents(state)
        except CloudDriveError as exc:
            logger.error("Fallback document loading failed: %s", exc)
            page.error = failure_message
            page.retry_action = "/ui/step/1"

    def _fallback_documents(self, state: WorkflowState) -> list[CloudItem]:
        """Second attempt at the case folder listing, used after a failure."""
        folder = state.selected_case_folder
        if not folder:
            raise CloudDriveError("no case folder selected - please select a case folder first")
        logger.info("Retrying document listing for case folder %s", folder)
        try:
            return self.drive.list_documents(folder)
        except CloudDriveError as exc:
            raise CloudDriveError(
                f"failed to load documents from case folder {folder}: {exc}"
            ) from exc

    def _load_step2(self, page: PageData, state: WorkflowState, is_returning: bool) -> None:
        if not state.selected_documents and not is_returning:
            logger.warning("Step 2 requested without a document selection")
            page.error = "Please select documents first."
        try:
            page.templates = self.catalog.list_templates()
        except ProcessingError as exc:
            logger.error("Failed to load templates: %s", exc)
            page.error = "Could not load templates. Please try again."
            page.retry_action = "/ui/step/2"

    def _load_step3(self, page: PageData, state: WorkflowState, is_returning: bool,
                    store, session_id: str) -> None:
        if state.selected_case_folder:
            try:
                page.documents = self.drive.list_documents(state.selected_case_folder)
            except CloudDriveError as exc:
                logger.error("Failed to load documents for missing-content analysis: %s", exc)

        try:
            page.processing_result, page.case_model = self._processing_for(
                state, is_returning, store, session_id
            )
        except PrerequisiteError as exc:
            logger.warning("Step 3 unavailable for session %s: %s", session_id, exc)
            self._override_to_templates(page, str(exc), exc.fallback_step)
            return

        page.legal_analysis = analyze(document_basenames(state.selected_documents))

    def _processing_for(self, state: WorkflowState, is_returning: bool,
                        store, session_id: str) -> tuple[ProcessingResult, CaseModel]:
        """Return the stored processing artifacts, rebuilding them when missing."""
        if not state.selected_template and not is_returning:
            raise PrerequisiteError("Please select a template first.", fallback_step=2)

        if state.has_processing:
            return state.processing_result, state.case_model

        if not (state.selected_documents and state.selected_template):
            raise PrerequisiteError(
                "Session data missing. Please select your documents and template again.",
                fallback_step=2,
            )

        logger.info("Rebuilding processing result for session %s", session_id)
        try:
            result, case = self.catalog.process(state.selected_documents, state.selected_template)
        except AdapterError as exc:
            logger.error("Failed to reprocess documents: %s", exc)
            raise PrerequisiteError(
                "Failed to process documents. Please try again.", fallback_step=2
            ) from exc
        self._store_processing(store, session_id, state.selected_template,
                               state.selected_documents, result, case)
        return result, case

    def _override_to_templates(self, page: PageData, message: str, step: int | None = 2) -> None:
        """Render the template step instead of the requested one (persisted step untouched)."""
        page.current_step = 2 if step is None else step
        page.error = message
        try:
            page.templates = self.catalog.list_templates()
        except ProcessingError as exc:
            logger.error("Failed to load templates: %s", exc)
            page.templates = []

    @staticmethod
    def _store_processing(store, session_id, template_id, documents, result, case):
        """Persist a processing result unless the inputs changed meanwhile."""

        def apply(state: WorkflowState) -> None:
            if state.selected_template != template_id or state.selected_documents != documents:
                logger.info("Selection changed during processing for session %s, "
                            "discarding result", session_id)
                return
            state.set_processing(result, case)

        return store.update(session_id, apply)

    # ── Step 0 actions ───────────────────────────────────────────────────

    def root_folders(self) -> StepOutcome:
        try:
            folders = self.drive.list_root_folders()
        except CloudDriveError as exc:
            return error_outcome(f"Could not load iCloud folders: {exc}", "/ui/icloud-folders")
        return StepOutcome.render("_icloud_folder_list.html", PageData(folders=folders))

    def case_folders(self, parent: str) -> StepOutcome:
        if not parent:
            return error_outcome("Parent folder parameter required")
        try:
            folders = self.drive.list_subfolders(parent)
        except CloudDriveError as exc:
            logger.error("Error accessing case folders: %s", exc)
            return error_outcome(f"Could not load case folders: {exc}",
                                 f"/ui/case-folders?parent={parent}")
        return StepOutcome.render("_case_folder_list.html",
                                  PageData(case_folders=folders, parent_folder=parent))

    def select_parent_folder(self, store, session_id: str, folder_path: str, *,
                             username: str = DEFAULT_USERNAME) -> StepOutcome:
        state = store.update(session_id, lambda s: s.select_parent_folder(folder_path))
        logger.info("Selected parent folder: %s", folder_path)
        try:
            case_folders = self.drive.list_subfolders(folder_path)
        except CloudDriveError as exc:
            logger.error("Error loading case folders: %s", exc)
            case_folders = []
        page = PageData.from_state(
            state, step=0, username=username,
            cloud_connected=True,
            parent_folder=folder_path,
            case_folders=case_folders,
            is_returning_user=state.current_step > 0,
        )
        return StepOutcome.render("_step0_case_setup.html", page)

    def select_case_folder(self, store, session_id: str, case_folder: str, *,
                           username: str = DEFAULT_USERNAME) -> StepOutcome:
        state = store.update(session_id, lambda s: s.select_case_folder(case_folder))
        logger.info("Selected case folder: %s", case_folder)
        page = PageData.from_state(state, step=1, username=username, cloud_connected=True)
        try:
            page.documents = self.drive.list_documents(case_folder)
        except CloudDriveError as exc:
            logger.error("Error loading documents from case folder %s: %s", case_folder, exc)
            page.error = (
                f"Could not load documents from case folder '{case_folder}'. Please check "
                "your iCloud Drive connection and ensure the folder exists."
            )
            page.retry_action = "/ui/step/1"
            return StepOutcome.render(STEP_WRAPPER, page)
        if not page.documents:
            logger.info("Case folder %s is empty or contains no readable documents", case_folder)
        return StepOutcome.render(STEP_WRAPPER, page)

    def connect_cloud(self, store, session_id: str, username: str, app_password: str) -> StepOutcome:
        if not username or not app_password:
            return StepOutcome.render(
                "_icloud_auth_error.html",
                PageData(error="Please enter both username and app password"),
            )
        logger.info("Cloud drive connection for user %s", username)
        store.update(session_id, lambda s: s.connect(username))
        return StepOutcome.render("_icloud_auth_success.html",
                                  PageData(username=username, cloud_connected=True))

    def setup_modal(self, *, username: str = DEFAULT_USERNAME) -> StepOutcome:
        return StepOutcome.render("_icloud_setup_modal.html", PageData(username=username))

    # ── Steps 1-2 actions ────────────────────────────────────────────────

    def load_documents(self, folder: str, *, username: str = DEFAULT_USERNAME) -> StepOutcome:
        try:
            documents = self.drive.list_documents(folder)
        except CloudDriveError as exc:
            logger.error("Error loading documents from %s: %s", folder, exc)
            documents = []
        page = PageData(current_step=1, username=username, cloud_connected=True,
                        selected_case_folder=folder, documents=documents)
        return StepOutcome.render("_step1_document_selection.html", page)

    def select_documents(self, store, session_id: str, documents: list[str],
                         case_folder: str | None = None, *,
                         username: str = DEFAULT_USERNAME) -> StepOutcome:
        docs = unique_in_order(documents)
        logger.info("Selected documents %s from folder %s", docs, case_folder)
        if not docs:
            return error_outcome("Please select at least one document")

        def apply(state: WorkflowState) -> None:
            state.set_documents(docs)
            state.advance_to(2)

        state = store.update(session_id, apply)
        page = PageData.from_state(state, step=2, username=username, cloud_connected=True)
        if case_folder:
            page.selected_case_folder = case_folder
        try:
            page.templates = self.catalog.list_templates()
        except ProcessingError as exc:
            logger.error("Error loading templates: %s", exc)
        return StepOutcome.render(STEP_WRAPPER, page)

    def select_template(self, store, session_id: str, template_id: str,
                        documents: list[str], *,
                        username: str = DEFAULT_USERNAME) -> StepOutcome:
        docs = unique_in_order(documents)
        logger.info("Selected template %s for documents %s", template_id, docs)
        if not template_id:
            return error_outcome("Please select a template")
        if not docs:
            state = store.get(session_id)
            page = PageData.from_state(
                state, step=2, username=username, cloud_connected=True,
                error="No documents selected for processing. "
                      "Please go back to Step 1 and select documents.",
            )
            try:
                page.templates = self.catalog.list_templates()
            except ProcessingError as exc:
                logger.error("Error loading templates: %s", exc)
            return StepOutcome.render(STEP_WRAPPER, page)

        def apply(state: WorkflowState) -> None:
            state.select_template(template_id, docs)
            state.advance_to(3)

        store.update(session_id, apply)

        try:
            result, case = self.catalog.process(docs, template_id)
        except AdapterError as exc:
            logger.error("Error processing selected documents: %s", exc)
            return error_outcome(f"Error processing documents: {exc}", "/ui/step/2")

        state = self._store_processing(store, session_id, template_id, docs, result, case)
        page = PageData.from_state(
            state, step=3, username=username, cloud_connected=True,
            processing_result=result,
            case_model=case,
            legal_analysis=analyze(document_basenames(docs)),
        )
        logger.debug("Template selected: step 3 with %d documents, %.1f%% coverage",
                     len(docs), result.data_coverage)
        return StepOutcome.render(STEP_WRAPPER, page)

    # ── Preview / documents ──────────────────────────────────────────────

    def preview(self, store, session_id: str, *, username: str = DEFAULT_USERNAME) -> StepOutcome:
        state = store.get(session_id)
        page = PageData(username=username, cloud_connected=True,
                        preview=build_preview(document_basenames(state.selected_documents)))
        return StepOutcome.render("_document_preview.html", page)

    def view_document(self, store, session_id: str, client_name: str | None, *,
                      username: str = DEFAULT_USERNAME) -> StepOutcome:
        page = self._document_page(store, session_id, client_name, username)
        logger.info("Rendering document viewer for %s", page.document_title)
        return StepOutcome.render("_document_viewer.html", page)

    def edit_document(self, store, session_id: str, client_name: str | None, *,
                      username: str = DEFAULT_USERNAME) -> StepOutcome:
        page = self._document_page(store, session_id, client_name, username)
        page.preview = build_preview(document_basenames(store.get(session_id).selected_documents))
        logger.info("Rendering document editor for %s (last saved %s)",
                    page.document_title, page.last_saved)
        return StepOutcome.render("_document_editor.html", page)

    def _document_page(self, store, session_id, client_name, username) -> PageData:
        client_name = client_name or DEFAULT_CLIENT_NAME
        state = store.get(session_id)
        document = self.materializer.locate_or_generate(
            client_name, document_basenames(state.selected_documents))
        timestamp = self._clock().strftime(FILENAME_TIMESTAMP_FORMAT)
        return PageData(
            username=username,
            cloud_connected=True,
            client_name=client_name,
            document_html=document.legal_document_html,
            document_title=f"Legal Complaint - {client_name}",
            document_filename=f"complaint_{client_key(client_name)}_{timestamp}.html",
            last_saved=document.last_saved,
        )

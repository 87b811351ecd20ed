"""
Tests: StepDispatcher.

Test blocks:
  1. Step 0 redirect for sessions without progress
  2. Step loading, fallbacks and inline errors
  3. Step 3 cold rebuild and stored results
  4. Returning users
  5. Workflow actions (documents, template, drive connection)

The drive and catalog are in-memory fakes; the session store is real.
"""

import pytest

from complaint_flow.core.exceptions import CloudDriveError, ProcessingError
from complaint_flow.integrations.cloud_drive import CloudDrive
from complaint_flow.models.documents import CaseModel, CloudItem, ProcessingResult, Template
from complaint_flow.services.document_processor import TemplateCatalog
from complaint_flow.services.session_store import SessionStore
from complaint_flow.services.step_dispatcher import (
    ERROR_FRAGMENT,
    STEP0_REDIRECT,
    STEP_WRAPPER,
    StepDispatcher,
)

SID = "sid"
CASE = "/Cases/Smith"
DOCS = ["/Cases/Smith/a.pdf", "/Cases/Smith/b.docx"]


class FakeDrive(CloudDrive):
    def __init__(self):
        self.fail_roots = False
        self.document_failures = 0
        self.document_calls = 0

    def list_root_folders(self):
        if self.fail_roots:
            raise CloudDriveError("drive offline")
        return [CloudItem(id="folder_0", name="Cases", path="/Cases", is_directory=True)]

    def list_subfolders(self, parent):
        return [CloudItem(id="subfolder_0", name="Smith", path=CASE, is_directory=True)]

    def list_documents(self, folder):
        self.document_calls += 1
        if self.document_failures:
            self.document_failures -= 1
            raise CloudDriveError(f"folder does not exist: {folder}")
        return [CloudItem(id="doc_0", name="a.pdf", path=folder + "/a.pdf", type="pdf")]


class FakeCatalog(TemplateCatalog):
    def __init__(self):
        self.calls = []
        self.fail_process = False
        self.fail_templates = False

    def list_templates(self):
        if self.fail_templates:
            raise ProcessingError("catalog offline")
        return [Template(id="fcra", name="FCRA", desc="test")]

    def process(self, doc_ids, template_id):
        self.calls.append((list(doc_ids), template_id))
        if self.fail_process:
            raise ProcessingError("boom")
        return ProcessingResult(template_id=template_id, data_coverage=50.0), CaseModel(client_name="Jane Doe")


@pytest.fixture()
def drive():
    return FakeDrive()


@pytest.fixture()
def catalog():
    return FakeCatalog()


@pytest.fixture()
def dispatcher(drive, catalog):
    return StepDispatcher(drive, catalog)


@pytest.fixture()
def store():
    return SessionStore()


def _ready_for_review(state):
    state.connect("alice")
    state.select_parent_folder("/Cases")
    state.select_case_folder(CASE)
    state.select_template("fcra", DOCS)
    state.advance_to(3)


# ── 1. Redirects ─────────────────────────────────────────────────────────


class TestRedirects:
    def test_fresh_session_redirects_to_step0(self, dispatcher, store):
        store.get(SID)
        outcome = dispatcher.dispatch(store, SID, 3)
        assert outcome.is_redirect
        assert outcome.redirect_url == STEP0_REDIRECT

    def test_unknown_session_redirects(self, dispatcher, store):
        assert dispatcher.dispatch(store, "never-seen", 2).redirect_url == STEP0_REDIRECT

    def test_connection_alone_still_redirects(self, dispatcher, store):
        store.update(SID, lambda s: s.connect("alice"))
        assert dispatcher.dispatch(store, SID, 1).is_redirect

    def test_step0_never_redirects(self, dispatcher, store):
        outcome = dispatcher.dispatch(store, SID, 0)
        assert not outcome.is_redirect
        assert outcome.template == STEP_WRAPPER
        assert outcome.page.current_step == 0

    def test_out_of_range_step_renders_step0(self, dispatcher, store):
        outcome = dispatcher.dispatch(store, SID, 9)
        assert outcome.page.current_step == 0


# ── 2. Step loading ──────────────────────────────────────────────────────


class TestStepLoading:
    def test_step0_lists_folders_when_connected(self, dispatcher, store):
        store.update(SID, lambda s: s.connect("alice"))
        page = dispatcher.dispatch(store, SID, 0).page
        assert page.cloud_connected
        assert [f.name for f in page.folders] == ["Cases"]

    def test_step0_connection_hint(self, dispatcher, store):
        page = dispatcher.dispatch(store, SID, 0, cloud_connected_hint=True).page
        assert page.cloud_connected
        assert not store.get(SID).cloud_connected

    def test_step0_drive_failure(self, dispatcher, drive, store):
        drive.fail_roots = True
        store.update(SID, lambda s: s.connect("alice"))
        page = dispatcher.dispatch(store, SID, 0).page
        assert page.error == "Could not load iCloud folders. Please try again."
        assert page.retry_action == "/ui/step/0"

    def test_step0_shows_case_folders_for_parent(self, dispatcher, store):
        store.update(SID, lambda s: s.select_parent_folder("/Cases"))
        page = dispatcher.dispatch(store, SID, 0).page
        assert page.parent_folder == "/Cases"
        assert [f.path for f in page.case_folders] == [CASE]

    def test_step1_lists_case_documents(self, dispatcher, store):
        store.update(SID, lambda s: s.select_case_folder(CASE))
        page = dispatcher.dispatch(store, SID, 1).page
        assert page.error is None
        assert [d.name for d in page.documents] == ["a.pdf"]

    def test_step1_retries_once_after_failure(self, dispatcher, drive, store):
        store.update(SID, lambda s: s.select_case_folder(CASE))
        drive.document_failures = 1
        page = dispatcher.dispatch(store, SID, 1).page
        assert page.error is None
        assert drive.document_calls == 2
        assert len(page.documents) == 1

    def test_step1_persistent_failure(self, dispatcher, drive, store):
        store.update(SID, lambda s: s.select_case_folder(CASE))
        drive.document_failures = 5
        page = dispatcher.dispatch(store, SID, 1).page
        assert page.error == "Could not load documents. Please check your case folder selection."
        assert page.retry_action == "/ui/step/1"

    def test_step1_without_case_folder(self, dispatcher, store):
        store.update(SID, lambda s: s.select_parent_folder("/Cases"))
        page = dispatcher.dispatch(store, SID, 1).page
        assert page.current_step == 1
        assert page.error == "Could not load documents. Please select a case folder."
        assert page.documents == []

    def test_step1_advances_persisted_step(self, dispatcher, store):
        store.update(SID, lambda s: s.select_parent_folder("/Cases"))
        dispatcher.dispatch(store, SID, 1)
        assert store.get(SID).current_step == 1

    def test_step2_without_documents(self, dispatcher, store):
        store.update(SID, lambda s: s.select_case_folder(CASE))
        page = dispatcher.dispatch(store, SID, 2).page
        assert page.error == "Please select documents first."
        assert [t.id for t in page.templates] == ["fcra"]

    def test_step2_catalog_failure(self, dispatcher, catalog, store):
        store.update(SID, lambda s: s.set_documents(DOCS))
        catalog.fail_templates = True
        page = dispatcher.dispatch(store, SID, 2).page
        assert page.error == "Could not load templates. Please try again."
        assert page.retry_action == "/ui/step/2"

    def test_step3_without_template_falls_back_to_step2(self, dispatcher, store):
        def setup(state):
            state.select_case_folder(CASE)
            state.set_documents(DOCS)
            state.advance_to(2)

        store.update(SID, setup)
        page = dispatcher.dispatch(store, SID, 3).page
        assert page.current_step == 2
        assert page.error == "Please select a template first."
        assert page.templates


# ── 3. Step 3 rebuild ────────────────────────────────────────────────────


class TestReviewStep:
    def test_cold_step3_rebuilds_and_persists(self, dispatcher, catalog, store):
        store.update(SID, _ready_for_review)
        outcome = dispatcher.dispatch(store, SID, 3)

        assert catalog.calls == [(DOCS, "fcra")]
        page = outcome.page
        assert page.current_step == 3
        assert page.processing_result.template_id == "fcra"
        assert page.case_model.client_name == "Jane Doe"
        assert page.legal_analysis.source_docs == ["a.pdf", "b.docx"]
        assert store.get(SID).has_processing

    def test_stored_result_is_reused(self, dispatcher, catalog, store):
        store.update(SID, _ready_for_review)
        dispatcher.dispatch(store, SID, 3)
        dispatcher.dispatch(store, SID, 3)
        assert len(catalog.calls) == 1

    def test_rebuild_failure_falls_back_to_step2(self, dispatcher, catalog, store):
        store.update(SID, _ready_for_review)
        catalog.fail_process = True
        page = dispatcher.dispatch(store, SID, 3).page
        assert page.current_step == 2
        assert page.error == "Failed to process documents. Please try again."
        assert not store.get(SID).has_processing

    def test_step3_lists_case_documents(self, dispatcher, store):
        store.update(SID, _ready_for_review)
        page = dispatcher.dispatch(store, SID, 3).page
        assert [d.name for d in page.documents] == ["a.pdf"]

    def test_stale_result_is_discarded(self, dispatcher, store):
        store.update(SID, _ready_for_review)
        result = ProcessingResult(template_id="old")
        dispatcher._store_processing(store, SID, "old", DOCS, result, CaseModel())
        assert not store.get(SID).has_processing


# ── 4. Returning users ───────────────────────────────────────────────────


class TestReturningUser:
    def test_going_back_keeps_progress(self, dispatcher, store):
        store.update(SID, _ready_for_review)
        page = dispatcher.dispatch(store, SID, 1).page
        assert page.is_returning_user
        assert page.current_step == 1
        assert page.selected_documents == DOCS
        assert store.get(SID).current_step == 3

    def test_returning_to_step2_has_no_prerequisite_error(self, dispatcher, store):
        def setup(state):
            state.select_case_folder(CASE)
            state.advance_to(3)

        store.update(SID, setup)
        page = dispatcher.dispatch(store, SID, 2).page
        assert page.is_returning_user
        assert page.error is None


# ── 5. Actions ───────────────────────────────────────────────────────────


class TestActions:
    def test_connect_cloud(self, dispatcher, store):
        outcome = dispatcher.connect_cloud(store, SID, "alice", "secret")
        assert outcome.template == "_icloud_auth_success.html"
        state = store.get(SID)
        assert state.cloud_connected
        assert state.cloud_username == "alice"

    def test_connect_cloud_requires_both_fields(self, dispatcher, store):
        outcome = dispatcher.connect_cloud(store, SID, "alice", "")
        assert outcome.template == "_icloud_auth_error.html"
        assert outcome.page.error == "Please enter both username and app password"
        assert not store.get(SID).cloud_connected

    def test_select_case_folder_advances(self, dispatcher, store):
        outcome = dispatcher.select_case_folder(store, SID, CASE)
        assert outcome.template == STEP_WRAPPER
        assert outcome.page.current_step == 1
        assert store.get(SID).current_step == 1
        assert store.get(SID).selected_case_folder == CASE

    def test_select_case_folder_drive_error(self, dispatcher, drive, store):
        drive.document_failures = 1
        page = dispatcher.select_case_folder(store, SID, CASE).page
        assert CASE in page.error
        assert page.retry_action == "/ui/step/1"
        assert store.get(SID).selected_case_folder == CASE

    def test_root_folders_error_fragment(self, dispatcher, drive):
        drive.fail_roots = True
        outcome = dispatcher.root_folders()
        assert outcome.template == ERROR_FRAGMENT
        assert outcome.page.retry_action == "/ui/icloud-folders"

    def test_case_folders_requires_parent(self, dispatcher):
        outcome = dispatcher.case_folders("")
        assert outcome.template == ERROR_FRAGMENT

    def test_select_documents(self, dispatcher, store):
        outcome = dispatcher.select_documents(store, SID, DOCS + DOCS[:1], CASE)
        assert outcome.page.current_step == 2
        assert store.get(SID).selected_documents == DOCS
        assert store.get(SID).current_step == 2

    def test_select_documents_requires_one(self, dispatcher, store):
        outcome = dispatcher.select_documents(store, SID, [], CASE)
        assert outcome.template == ERROR_FRAGMENT
        assert outcome.page.error == "Please select at least one document"

    def test_select_template_processes(self, dispatcher, catalog, store):
        outcome = dispatcher.select_template(store, SID, "fcra", DOCS)
        assert outcome.page.current_step == 3
        assert outcome.page.legal_analysis.source_docs == ["a.pdf", "b.docx"]
        state = store.get(SID)
        assert state.selected_template == "fcra"
        assert state.has_processing
        assert state.current_step == 3

    def test_switching_template_reprocesses(self, dispatcher, catalog, store):
        dispatcher.select_template(store, SID, "fcra", DOCS)
        dispatcher.select_template(store, SID, "fcra2", DOCS)
        assert [c[1] for c in catalog.calls] == ["fcra", "fcra2"]
        assert store.get(SID).processing_result.template_id == "fcra2"

    def test_missing_template_persists_nothing(self, dispatcher, store):
        before = store.get(SID)
        outcome = dispatcher.select_template(store, SID, "", DOCS)
        assert outcome.template == ERROR_FRAGMENT
        assert outcome.page.error == "Please select a template"
        after = store.get(SID)
        assert after.selected_template == before.selected_template
        assert after.selected_documents == before.selected_documents

    def test_missing_documents_renders_step2(self, dispatcher, store):
        outcome = dispatcher.select_template(store, SID, "fcra", [])
        assert outcome.template == STEP_WRAPPER
        assert outcome.page.current_step == 2
        assert outcome.page.error.startswith("No documents selected for processing.")
        assert store.get(SID).selected_template is None

    def test_processing_error_keeps_selection(self, dispatcher, catalog, store):
        catalog.fail_process = True
        outcome = dispatcher.select_template(store, SID, "fcra", DOCS)
        assert outcome.template == ERROR_FRAGMENT
        assert outcome.page.error == "Error processing documents: boom"
        assert outcome.page.retry_action == "/ui/step/2"
        state = store.get(SID)
        assert state.selected_template == "fcra"
        assert state.selected_documents == DOCS
        assert not state.has_processing

    def test_preview_uses_selected_filenames(self, dispatcher, store):
        store.update(SID, lambda s: s.set_documents(DOCS))
        outcome = dispatcher.preview(store, SID)
        assert outcome.template == "_document_preview.html"
        assert outcome.page.preview.source_docs == ["a.pdf", "b.docx"]

"""
Tests: /ui workflow endpoints end to end through the Flask test client.

Test blocks:
  1. Forward walk to step 3 and template switch
  2. Step navigation redirects
  3. Request validation (400 JSON)
  4. Document view / edit / save
"""

import glob
import os

from conftest import CASES, SESSION_ID, SMITH

DOC_A = SMITH + "/a.pdf"
DOC_B = SMITH + "/b.docx"


def _walk_to_review(c, template="fcra"):
    c.post("/ui/icloud-auth", data={"username": "alice", "appPassword": "x"})
    c.post("/ui/select-parent-folder", data={"folderPath": CASES})
    c.post("/ui/select-case-folder", data={"caseFolder": SMITH})
    c.post("/ui/select-documents", data={"selectedDocs": [DOC_A, DOC_B], "caseFolder": SMITH})
    return c.post("/ui/select-template", data={"selectedTemplate": template,
                                               "selectedDocs": [DOC_A, DOC_B]})


# ── 1. Forward walk ──────────────────────────────────────────────────────


class TestForwardWalk:
    def test_walk_to_step3(self, session_client, store):
        res = session_client.get("/ui/step/0")
        assert res.status_code == 200
        assert 'data-current-step="0"' in res.get_data(as_text=True)

        res = session_client.post("/ui/icloud-auth", data={"username": "alice", "appPassword": "x"})
        assert res.status_code == 200
        assert "iCloud Drive connected" in res.get_data(as_text=True)
        assert store.get(SESSION_ID).cloud_connected

        res = session_client.post("/ui/select-parent-folder", data={"folderPath": CASES})
        assert res.status_code == 200
        body = res.get_data(as_text=True)
        assert "Smith" in body and "Jones" in body
        assert store.get(SESSION_ID).selected_parent_folder == CASES

        res = session_client.post("/ui/select-case-folder", data={"caseFolder": SMITH})
        assert res.status_code == 200
        body = res.get_data(as_text=True)
        assert 'data-current-step="1"' in body
        assert "a.pdf" in body
        assert store.get(SESSION_ID).current_step == 1

        res = session_client.post("/ui/select-documents",
                                  data={"selectedDocs": [DOC_A, DOC_B], "caseFolder": SMITH})
        assert res.status_code == 200
        assert 'data-current-step="2"' in res.get_data(as_text=True)
        assert store.get(SESSION_ID).current_step == 2

        res = session_client.post("/ui/select-template",
                                  data={"selectedTemplate": "fcra", "selectedDocs": [DOC_A, DOC_B]})
        assert res.status_code == 200
        body = res.get_data(as_text=True)
        assert 'data-current-step="3"' in body
        assert 'data-source-docs="a.pdf,b.docx"' in body

        state = store.get(SESSION_ID)
        assert state.current_step == 3
        assert state.selected_template == "fcra"
        assert state.selected_documents == [DOC_A, DOC_B]
        assert state.processing_result is not None
        assert state.case_model is not None

    def test_template_switch_reprocesses(self, session_client, store):
        _walk_to_review(session_client)
        res = session_client.post("/ui/select-template",
                                  data={"selectedTemplate": "fcra2", "selectedDocs": [DOC_A, DOC_B]})
        assert res.status_code == 200
        state = store.get(SESSION_ID)
        assert state.selected_template == "fcra2"
        assert state.processing_result.template_id == "fcra2"
        assert state.case_model is not None

    def test_bracketed_field_names_accepted(self, session_client, store):
        _walk_to_review(session_client)
        session_client.post("/ui/select-documents", data={"selectedDocs[]": [DOC_A]})
        state = store.get(SESSION_ID)
        assert state.selected_documents == [DOC_A]
        assert state.processing_result is None

    def test_no_cookie_uses_temp_session(self, client, store):
        client.post("/ui/icloud-auth", data={"username": "alice", "appPassword": "x"})
        assert store.get("temp_session").cloud_connected

    def test_review_step_revisited(self, session_client):
        _walk_to_review(session_client)
        res = session_client.get("/ui/step/3")
        assert res.status_code == 200
        assert "Legal analysis" in res.get_data(as_text=True)


# ── 2. Navigation ────────────────────────────────────────────────────────


class TestNavigation:
    def test_step3_without_progress_redirects(self, session_client):
        res = session_client.get("/ui/step/3")
        assert res.status_code == 200
        assert res.headers["HX-Redirect"] == "/ui/step/0"
        assert res.get_data(as_text=True) == ""

    def test_invalid_step_renders_step0(self, session_client):
        for step in ("7", "abc", "-1"):
            res = session_client.get(f"/ui/step/{step}")
            assert res.status_code == 200
            assert 'data-current-step="0"' in res.get_data(as_text=True)

    def test_going_back_marks_returning_user(self, session_client):
        _walk_to_review(session_client)
        res = session_client.get("/ui/step/1")
        body = res.get_data(as_text=True)
        assert 'data-current-step="1"' in body
        assert "Returning to an earlier step" in body

    def test_root_folder_fragment(self, session_client):
        res = session_client.get("/ui/icloud-folders")
        body = res.get_data(as_text=True)
        assert "Documents" in body and "Users" in body
        assert ".hidden" not in body

    def test_case_folder_fragment_error(self, session_client):
        res = session_client.get("/ui/case-folders?parent=/Nowhere")
        assert res.status_code == 200
        assert "Could not load case folders" in res.get_data(as_text=True)

    def test_setup_modal(self, session_client):
        res = session_client.get("/ui/icloud-setup")
        assert 'hx-post="/ui/icloud-auth"' in res.get_data(as_text=True)

    def test_auth_missing_fields(self, session_client, store):
        res = session_client.post("/ui/icloud-auth", data={"username": "alice"})
        assert res.status_code == 200
        assert "Please enter both username and app password" in res.get_data(as_text=True)
        assert not store.get(SESSION_ID).cloud_connected

    def test_load_documents_fragment(self, session_client):
        res = session_client.get(f"/ui/load-documents?folder={SMITH}")
        body = res.get_data(as_text=True)
        assert "Attorney_Notes.txt" in body
        assert 'name="selectedDocs"' in body


# ── 3. Validation ────────────────────────────────────────────────────────


class TestValidation:
    def test_missing_folder_path(self, session_client):
        res = session_client.post("/ui/select-parent-folder", data={})
        assert res.status_code == 400
        payload = res.get_json()
        assert payload["success"] is False
        assert payload["error"] == "Folder path required"
        assert payload["code"] == "ERR_VALIDATION_REQUIRED"

    def test_missing_case_folder(self, session_client):
        res = session_client.post("/ui/select-case-folder", data={})
        assert res.status_code == 400
        assert res.get_json()["error"] == "Case folder required"

    def test_missing_folder_param(self, session_client):
        res = session_client.get("/ui/load-documents")
        assert res.status_code == 400
        assert res.get_json()["error"] == "Folder parameter required"

    def test_select_documents_none(self, session_client):
        res = session_client.post("/ui/select-documents", data={"caseFolder": SMITH})
        assert res.status_code == 200
        assert "Please select at least one document" in res.get_data(as_text=True)

    def test_select_template_missing(self, session_client, store):
        res = session_client.post("/ui/select-template", data={"selectedDocs": [DOC_A]})
        assert "Please select a template" in res.get_data(as_text=True)
        assert store.get(SESSION_ID).selected_documents == []


# ── 4. Documents ─────────────────────────────────────────────────────────


def _page(body):
    return f'<html><body><div class="legal-document">{body}</div></body></html>'


class TestDocuments:
    def test_view_prefers_latest(self, session_client, save_dir):
        (save_dir / "complaint_bob_20240101_000000.html").write_text(_page("OLD BODY"))
        (save_dir / "complaint_bob_latest.html").write_text(_page("LATEST BODY"))
        res = session_client.get("/ui/view-document?client=Bob")
        assert res.status_code == 200
        body = res.get_data(as_text=True)
        assert "LATEST BODY" in body
        assert "OLD BODY" not in body
        assert "Legal Complaint - Bob" in body

    def test_view_generates_when_missing(self, session_client, save_dir):
        res = session_client.get("/ui/view-document")
        assert res.status_code == 200
        assert "UNITED STATES DISTRICT COURT" in res.get_data(as_text=True)
        assert (save_dir / "complaint_eman_youssef_latest.html").exists()

    def test_edit_shows_last_saved(self, session_client, save_dir):
        (save_dir / "complaint_bob_20240201_093000.html").write_text(_page("FEB"))
        res = session_client.get("/ui/edit-document?client=Bob")
        body = res.get_data(as_text=True)
        assert 'contenteditable="true"' in body
        assert "9:30:00 AM" in body
        assert "FEB" in body

    def test_save_creates_both_files(self, session_client, save_dir):
        res = session_client.post("/ui/save-document", json={
            "content": "<p>x</p>", "clientName": "Bob", "documentType": "complaint",
        })
        assert res.status_code == 200
        payload = res.get_json()
        assert payload["success"] is True
        assert payload["latest_path"] == os.path.join(str(save_dir), "complaint_bob_latest.html")
        assert os.path.basename(payload["path"]).startswith("complaint_bob_")

        canonical = [p for p in glob.glob(str(save_dir / "complaint_bob_*.html"))
                     if not p.endswith("_latest.html")]
        assert canonical == [payload["path"]]
        for path in (payload["path"], payload["latest_path"]):
            with open(path, encoding="utf-8") as fh:
                assert '<div class="legal-document">\n\t\t<p>x</p>\n\t</div>' in fh.read()

    def test_saved_content_is_served(self, session_client):
        session_client.post("/ui/save-document", json={"content": "<p>edited</p>", "clientName": "Bob"})
        res = session_client.get("/ui/view-document?client=Bob")
        assert "<p>edited</p>" in res.get_data(as_text=True)

    def test_save_empty_content(self, session_client):
        res = session_client.post("/ui/save-document", json={"content": "", "clientName": "Bob"})
        assert res.status_code == 400
        assert res.get_json() == {
            "success": False,
            "error": "Empty document content",
            "code": "ERR_VALIDATION_REQUIRED",
            "details": {"field": "content"},
        }

    def test_save_malformed_json(self, session_client):
        res = session_client.post("/ui/save-document", data="{not json",
                                  content_type="application/json")
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_save_rejects_path_segments(self, session_client, save_dir):
        for field, value in (("documentType", "../escaped"), ("clientName", "a/b"),
                             ("clientName", "..\\x"), ("documentType", "bad\x00")):
            res = session_client.post("/ui/save-document",
                                      json={"content": "<p>x</p>", field: value})
            assert res.status_code == 400
            payload = res.get_json()
            assert payload["code"] == "ERR_VALIDATION_INVALID"
            assert payload["details"] == {"field": field}
        assert list(save_dir.iterdir()) == []
        assert not list(save_dir.parent.glob("escaped_*"))

    def test_save_rejects_non_string_fields(self, session_client, save_dir):
        for field, value in (("clientName", 42), ("documentType", ["complaint"])):
            res = session_client.post("/ui/save-document",
                                      json={"content": "<p>x</p>", field: value})
            assert res.status_code == 400
            assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"
        assert list(save_dir.iterdir()) == []

    def test_save_storage_failure(self, app, session_client, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        app.extensions["complaint_flow"]["materializer"].save_dir = str(blocker / "saved")
        res = session_client.post("/ui/save-document", json={"content": "<p>x</p>"})
        assert res.status_code == 500
        payload = res.get_json()
        assert payload["success"] is False
        assert payload["code"] == "ERR_STORAGE"

    def test_preview_fragment(self, session_client):
        _walk_to_review(session_client)
        res = session_client.get("/ui/preview-document")
        body = res.get_data(as_text=True)
        assert "COMPLAINT FOR VIOLATIONS OF THE FAIR CREDIT REPORTING ACT" in body
        assert "a.pdf, b.docx" in body

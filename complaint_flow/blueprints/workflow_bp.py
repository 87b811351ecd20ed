"""
Workflow Blueprint - HTMX endpoints for the four-step complaint flow.

Endpoints:
    GET  /ui/step/<step>               - render a step (HX-Redirect to step 0 when nothing was picked yet)
    GET  /ui/icloud-folders            - root folder list fragment
    GET  /ui/case-folders?parent=      - case folder list fragment
    POST /ui/select-parent-folder      - persist parent folder, case-setup fragment
    POST /ui/select-case-folder        - persist case folder, step-1 wrapper
    GET  /ui/icloud-setup              - drive setup modal
    POST /ui/icloud-auth               - mark drive connected, success/error modal
    GET  /ui/load-documents?folder=    - document list fragment
    POST /ui/select-documents          - persist documents, step-2 wrapper
    POST /ui/select-template           - persist template, process, step-3 wrapper
    GET  /ui/preview-document          - complaint preview fragment
    GET  /ui/view-document?client=     - saved complaint viewer
    GET  /ui/edit-document?client=     - saved complaint editor
    POST /ui/save-document             - persist editor content (JSON)

Layer contract:
    - Views parse the request, call the StepDispatcher / DocumentMaterializer
      and render the returned outcome. No state mutation happens here.
    - The session store arrives through ``g.session_store``; the session id
      through ``g.session_id`` (see middleware/session_context.py).
    - Missing required fields raise MalformedRequestError (→ 400 JSON);
      DocumentStorageError propagates to the app-level handler (→ 500).
"""

import logging

from flask import Blueprint, current_app, g, jsonify, make_response, render_template, request

from complaint_flow.blueprints import form_list, require_value
from complaint_flow.utils.errors import E, api_error
from complaint_flow.utils.helpers import parse_step

logger = logging.getLogger(__name__)

workflow_bp = Blueprint("workflow", __name__, url_prefix="/ui")

# Segments that would let a saved filename leave the save directory.
_UNSAFE_NAME_PARTS = ("/", "\\", "..", "\x00")


# ── Private helpers ──────────────────────────────────────────────────────────


def _services():
    return current_app.extensions["complaint_flow"]


def _dispatcher():
    return _services()["dispatcher"]


def _respond(outcome):
    """Turn a StepOutcome into an HTMX response."""
    if outcome.is_redirect:
        response = make_response("", 200)
        response.headers["HX-Redirect"] = outcome.redirect_url
        return response
    return render_template(outcome.template, page=outcome.page)


def _client_name() -> str:
    return request.args.get("client") or current_app.config["DEFAULT_CLIENT_NAME"]


# ── Step navigation ──────────────────────────────────────────────────────────


@workflow_bp.route("/step/<step>", methods=["GET"])
def get_step(step):
    """Render a workflow step.

    Query params:
        icloud_connected (str, optional): "true" shows the drive as connected
            even before the session records it.
    """
    g.step = parse_step(step)
    outcome = _dispatcher().dispatch(
        g.session_store, g.session_id, g.step,
        username=g.username,
        cloud_connected_hint=request.args.get("icloud_connected") == "true",
    )
    return _respond(outcome)


# ── Step 0: cloud drive ──────────────────────────────────────────────────────


@workflow_bp.route("/icloud-folders", methods=["GET"])
def icloud_folders():
    return _respond(_dispatcher().root_folders())


@workflow_bp.route("/case-folders", methods=["GET"])
def case_folders():
    return _respond(_dispatcher().case_folders(request.args.get("parent", "").strip()))


@workflow_bp.route("/select-parent-folder", methods=["POST"])
def select_parent_folder():
    folder_path = require_value(request.form, "folderPath", "Folder path required")
    outcome = _dispatcher().select_parent_folder(
        g.session_store, g.session_id, folder_path, username=g.username,
    )
    return _respond(outcome)


@workflow_bp.route("/select-case-folder", methods=["POST"])
def select_case_folder():
    case_folder = require_value(request.form, "caseFolder", "Case folder required")
    outcome = _dispatcher().select_case_folder(
        g.session_store, g.session_id, case_folder, username=g.username,
    )
    return _respond(outcome)


@workflow_bp.route("/icloud-setup", methods=["GET"])
def icloud_setup():
    return _respond(_dispatcher().setup_modal(username=g.username))


@workflow_bp.route("/icloud-auth", methods=["POST"])
def icloud_auth():
    outcome = _dispatcher().connect_cloud(
        g.session_store, g.session_id,
        request.form.get("username", "").strip(),
        request.form.get("appPassword", ""),
    )
    return _respond(outcome)


# ── Steps 1-2: documents and template ────────────────────────────────────────


@workflow_bp.route("/load-documents", methods=["GET"])
def load_documents():
    folder = require_value(request.args, "folder", "Folder parameter required")
    return _respond(_dispatcher().load_documents(folder, username=g.username))


@workflow_bp.route("/select-documents", methods=["POST"])
def select_documents():
    outcome = _dispatcher().select_documents(
        g.session_store, g.session_id,
        form_list("selectedDocs"),
        request.form.get("caseFolder", "").strip() or None,
        username=g.username,
    )
    return _respond(outcome)


@workflow_bp.route("/select-template", methods=["POST"])
def select_template():
    outcome = _dispatcher().select_template(
        g.session_store, g.session_id,
        request.form.get("selectedTemplate", "").strip(),
        form_list("selectedDocs"),
        username=g.username,
    )
    return _respond(outcome)


# ── Preview and saved documents ──────────────────────────────────────────────


@workflow_bp.route("/preview-document", methods=["GET"])
def preview_document():
    return _respond(_dispatcher().preview(g.session_store, g.session_id, username=g.username))


@workflow_bp.route("/view-document", methods=["GET"])
def view_document():
    outcome = _dispatcher().view_document(
        g.session_store, g.session_id, _client_name(), username=g.username,
    )
    return _respond(outcome)


@workflow_bp.route("/edit-document", methods=["GET"])
def edit_document():
    outcome = _dispatcher().edit_document(
        g.session_store, g.session_id, _client_name(), username=g.username,
    )
    return _respond(outcome)


@workflow_bp.route("/save-document", methods=["POST"])
def save_document():
    """Persist editor content.

    Body (JSON):
        content (str): legal-document inner HTML, required.
        clientName (str, optional): defaults to DEFAULT_CLIENT_NAME.
        documentType (str, optional): defaults to "complaint".
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return api_error(E.VALIDATION_INVALID, "Invalid request format: expected a JSON object")

    content = data.get("content")
    if not isinstance(content, str) or not content:
        return api_error(E.VALIDATION_REQUIRED, "Empty document content",
                         details={"field": "content"})

    for field_name in ("clientName", "documentType"):
        value = data.get(field_name)
        if value is None:
            continue
        if not isinstance(value, str):
            return api_error(E.VALIDATION_INVALID, f"{field_name} must be a string",
                             details={"field": field_name})
        if any(part in value for part in _UNSAFE_NAME_PARTS):
            return api_error(E.VALIDATION_INVALID, f"{field_name} contains invalid characters",
                             details={"field": field_name})

    client_name = data.get("clientName") or current_app.config["DEFAULT_CLIENT_NAME"]
    document_type = data.get("documentType") or "complaint"
    logger.info("Saving document for client %s (%d chars)", client_name, len(content))

    result = _services()["materializer"].save(content, client_name, document_type)
    return jsonify(result.to_dict()), 200

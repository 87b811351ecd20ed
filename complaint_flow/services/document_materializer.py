"""
Document materializer - locates, reads and (re)generates the HTML complaint
a client's documents are viewed and edited from.

File naming inside ``save_dir``:
    canonical  {type}_{client_key}_{YYYYMMDD_HHMMSS}.html   (append-only)
    alias      {type}_{client_key}_latest.html               (last writer wins)

``locate_or_generate`` lookup order, first readable hit wins:
    1. alias file
    2. legacy file ``complaint_{key}_{LEGACY_DOCUMENT_TIMESTAMP}.html``
    3. newest ``complaint_{key}_*.html`` by reverse filename order
    4. generate from the preview sections, writing canonical + alias with
       the same timestamp

Errors:
    DocumentStorageError - save directory or canonical file cannot be written
    (maps to HTTP 500). Alias writes and unreadable candidates are logged
    and skipped.
"""

from __future__ import annotations

import glob
import html
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime

from complaint_flow.core.exceptions import DocumentStorageError
from complaint_flow.services.preview_generator import build_preview
from complaint_flow.utils.helpers import client_key

logger = logging.getLogger(__name__)

LEGACY_TIMESTAMP = "20250605_010420"
LEGACY_LAST_SAVED = "10:42 AM"
DEFAULT_CLIENT_NAME = "Eman Youssef"
DEFAULT_DOCUMENT_TYPE = "complaint"

FILENAME_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
RESPONSE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

LEGAL_DOCUMENT_OPEN = '<div class="legal-document">'
_CLOSING_DIV = "</div>"
_TIMESTAMP_SUFFIX = re.compile(r"_(\d{8}_\d{6})\.html$")

# Fixed skeleton for every persisted complaint; %s slots are the client name
# and the body markup.
DOCUMENT_SKELETON = (
    "<!DOCTYPE html>\n"
    '<html lang="en">\n'
    "<head>\n"
    '\t<meta charset="UTF-8">\n'
    '\t<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
    "\t<title>Legal Complaint - %s</title>\n"
    "\t<style>\n"
    "\t\tbody { font-family: 'Times New Roman', serif; margin: 1in; line-height: 1.5; }\n"
    "\t\t.highlight { background-color: #fef08a; }\n"
    "\t\t.legal-document {\n"
    "\t\t\tfont-family: Times New Roman, serif;\n"
    "\t\t\tline-height: 1.5;\n"
    "\t\t\tmargin: 1in;\n"
    "\t\t}\n"
    "\t\t.header {\n"
    "\t\t\ttext-align: center;\n"
    "\t\t\tmargin-bottom: 24px;\n"
    "\t\t}\n"
    "\t\t.court-info {\n"
    "\t\t\ttext-align: center;\n"
    "\t\t\tmargin-bottom: 24px;\n"
    "\t\t\ttext-transform: uppercase;\n"
    "\t\t}\n"
    "\t\t.case-info {\n"
    "\t\t\ttext-align: center;\n"
    "\t\t\tmargin-bottom: 24px;\n"
    "\t\t}\n"
    "\t\t.section-title {\n"
    "\t\t\ttext-align: center;\n"
    "\t\t\ttext-transform: uppercase;\n"
    "\t\t\tfont-weight: bold;\n"
    "\t\t\tmargin: 24px 0;\n"
    "\t\t}\n"
    "\t\t.paragraph {\n"
    "\t\t\ttext-indent: 0.5in;\n"
    "\t\t\tmargin-bottom: 12px;\n"
    "\t\t}\n"
    "\t\t.numbered-paragraph {\n"
    "\t\t\tmargin-bottom: 12px;\n"
    "\t\t}\n"
    "\t\t.signature-block {\n"
    "\t\t\tmargin-top: 48px;\n"
    "\t\t}\n"
    "\t</style>\n"
    "</head>\n"
    "<body>\n"
    "\t%s\n"
    "</body>\n"
    "</html>"
)


def render_document(client_name: str, body: str) -> str:
    """Embed *body* in the fixed complaint skeleton."""
    return DOCUMENT_SKELETON % (html.escape(client_name, quote=False), body)


def extract_legal_document(document_html: str) -> str:
    """Return the ``legal-document`` div of a full complaint page.

    Spans from the first ``<div class="legal-document">`` through the last
    ``</div>``. Falls back to the whole input when the div cannot be
    isolated.
    """
    start = document_html.find(LEGAL_DOCUMENT_OPEN)
    end = document_html.rfind(_CLOSING_DIV)
    if start >= 0 and end > start:
        return document_html[start:end + len(_CLOSING_DIV)]
    logger.warning("Could not extract legal document div, using full document content")
    return document_html


def format_clock_time(moment: datetime) -> str:
    """``14:05:09`` → ``"2:05:09 PM"`` (no leading zero on the hour)."""
    hour = moment.hour % 12 or 12
    return f"{hour}:{moment:%M:%S %p}"


def sections_to_html(sections) -> str:
    parts = [LEGAL_DOCUMENT_OPEN]
    for section in sections:
        if section.title:
            parts.append(f'<div class="section-title">{section.title}</div>\n')
        parts.append(f'<div class="section-content">{section.content}</div>\n')
    parts.append(_CLOSING_DIV)
    return "".join(parts)


@dataclass
class MaterializedDocument:
    """A complaint page read from or written to ``save_dir``.

    ``source`` is one of ``latest``, ``legacy``, ``match``, ``generated``.
    """

    path: str
    html: str
    source: str
    last_saved: str

    @property
    def legal_document_html(self) -> str:
        return extract_legal_document(self.html)


@dataclass
class SaveResult:
    path: str
    latest_path: str
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "success": True,
            "path": self.path,
            "latest_path": self.latest_path,
            "timestamp": self.timestamp,
        }


class DocumentMaterializer:
    """Filesystem-backed store of generated and edited complaint pages.

    Args:
        save_dir: Directory holding the saved HTML files.
        legacy_timestamp: Timestamp of the historical complaint file checked
            before globbing; falsy disables the lookup.
        clock: Returns the local time used for filenames (tests inject it).
    """

    def __init__(self, save_dir, legacy_timestamp: str | None = LEGACY_TIMESTAMP, clock=None):
        self.save_dir = str(save_dir)
        self.legacy_timestamp = legacy_timestamp or None
        self._clock = clock or datetime.now

    # ── Paths ────────────────────────────────────────────────────────────

    def ensure_save_dir(self) -> None:
        try:
            os.makedirs(self.save_dir, mode=0o755, exist_ok=True)
        except OSError as exc:
            logger.error("Failed to create saved documents directory %s: %s", self.save_dir, exc)
            raise DocumentStorageError("Could not create save directory", self.save_dir) from exc

    def canonical_path(self, client_name: str, timestamp: str,
                       document_type: str = DEFAULT_DOCUMENT_TYPE) -> str:
        filename = f"{document_type}_{client_key(client_name)}_{timestamp}.html"
        path = os.path.join(self.save_dir, filename)
        if os.path.dirname(os.path.abspath(path)) != os.path.abspath(self.save_dir):
            logger.warning("Rejected document path outside %s: %r", self.save_dir, filename)
            raise DocumentStorageError("Document path escapes the save directory", path)
        return path

    def latest_path(self, client_name: str, document_type: str = DEFAULT_DOCUMENT_TYPE) -> str:
        return self.canonical_path(client_name, "latest", document_type)

    def _matching_paths(self, client_name: str) -> list[str]:
        prefix = f"{DEFAULT_DOCUMENT_TYPE}_{client_key(client_name)}_"
        pattern = os.path.join(glob.escape(self.save_dir), glob.escape(prefix) + "*.html")
        # Only timestamped names; "bob_smith_..." must not match client "bob".
        exact = re.compile(re.escape(prefix) + r"\d{8}_\d{6}\.html$")
        return sorted((p for p in glob.glob(pattern) if exact.fullmatch(os.path.basename(p))),
                      reverse=True)

    # ── Lookup ───────────────────────────────────────────────────────────

    @staticmethod
    def _read(path: str) -> str | None:
        try:
            with open(path, encoding="utf-8") as fh:
                return fh.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.error("Error reading document file %s: %s", path, exc)
            return None

    def locate(self, client_name: str) -> MaterializedDocument | None:
        """Find an existing complaint page for *client_name*."""
        latest = self.latest_path(client_name)
        content = self._read(latest)
        if content is not None:
            logger.info("Using latest document: %s", latest)
            try:
                modified = datetime.fromtimestamp(os.path.getmtime(latest))
            except OSError:
                modified = self._clock()
            return MaterializedDocument(latest, content, "latest", format_clock_time(modified))

        if self.legacy_timestamp:
            legacy = self.canonical_path(client_name, self.legacy_timestamp)
            content = self._read(legacy)
            if content is not None:
                logger.info("Using legacy timestamp document: %s", legacy)
                return MaterializedDocument(legacy, content, "legacy", LEGACY_LAST_SAVED)

        for path in self._matching_paths(client_name):
            content = self._read(path)
            if content is None:
                continue
            logger.info("Using most recent document: %s", path)
            return MaterializedDocument(path, content, "match", self._saved_time_from_name(path))
        return None

    def _saved_time_from_name(self, path: str) -> str:
        match = _TIMESTAMP_SUFFIX.search(os.path.basename(path))
        if match:
            try:
                return format_clock_time(datetime.strptime(match.group(1), FILENAME_TIMESTAMP_FORMAT))
            except ValueError:
                pass
        return format_clock_time(self._clock())

    def generate(self, client_name: str, selected_filenames) -> MaterializedDocument:
        """Write a fresh complaint from the preview sections (canonical + alias)."""
        preview = build_preview(selected_filenames)
        full_html = render_document(client_name, sections_to_html(preview.content))

        timestamp = self._clock().strftime(FILENAME_TIMESTAMP_FORMAT)
        path = self.canonical_path(client_name, timestamp)
        self._write_pair(path, self.latest_path(client_name), full_html)
        logger.info("Generated and saved new document to %s", path)
        return MaterializedDocument(path, full_html, "generated", "Just Now")

    def locate_or_generate(self, client_name: str, selected_filenames=None) -> MaterializedDocument:
        self.ensure_save_dir()
        document = self.locate(client_name)
        if document is None:
            logger.info("No existing document for %s, generating from preview content", client_name)
            document = self.generate(client_name, selected_filenames)
        return document

    # ── Save ─────────────────────────────────────────────────────────────

    def save(self, content: str, client_name: str = DEFAULT_CLIENT_NAME,
             document_type: str = DEFAULT_DOCUMENT_TYPE) -> SaveResult:
        """Persist editor content as a new canonical file and refresh the alias."""
        client_name = client_name or DEFAULT_CLIENT_NAME
        document_type = document_type or DEFAULT_DOCUMENT_TYPE
        self.ensure_save_dir()

        now = self._clock()
        path = self.canonical_path(client_name, now.strftime(FILENAME_TIMESTAMP_FORMAT), document_type)
        latest = self.latest_path(client_name, document_type)
        body = f"{LEGAL_DOCUMENT_OPEN}\n\t\t{content}\n\t{_CLOSING_DIV}"
        self._write_pair(path, latest, render_document(client_name, body))

        logger.info("Document saved to %s", path)
        return SaveResult(path=path, latest_path=latest,
                          timestamp=now.strftime(RESPONSE_TIMESTAMP_FORMAT))

    @staticmethod
    def _write_pair(path: str, latest: str, full_html: str) -> None:
        try:
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(full_html)
        except OSError as exc:
            logger.error("Error saving document to %s: %s", path, exc)
            raise DocumentStorageError(f"Error saving document: {exc}", path) from exc
        try:
            with open(latest, "w", encoding="utf-8") as fh:
                fh.write(full_html)
        except OSError as exc:
            logger.warning("Error saving document to latest path %s: %s", latest, exc)

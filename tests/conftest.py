"""
Shared pytest fixtures for the Complaint Workflow test suite.

Provides:
    - drive_root: sample synced cloud drive on tmp_path
    - save_dir: empty saved-documents directory on tmp_path
    - app: Flask application bound to those directories (function-scoped)
    - client: Flask test client without a session cookie ("temp_session")
    - session_client: test client carrying a ``session_token`` cookie
    - store: the app's SessionStore
"""

import pytest

from complaint_flow import create_app

CASES = "/Users/alice/Cases"
SMITH = "/Users/alice/Cases/Smith"
SESSION_ID = "test-session"


def _write(path, text=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


# ── Directory fixtures ───────────────────────────────────────────────────


@pytest.fixture()
def drive_root(tmp_path):
    """Drive tree:

    /Documents/
    /Users/alice/Cases/Smith/{a.pdf, b.docx, Attorney_Notes.txt}
    /Users/alice/Cases/Jones/
    /.hidden/
    /readme.txt
    """
    root = tmp_path / "drive"
    smith = root / "Users" / "alice" / "Cases" / "Smith"
    _write(smith / "a.pdf", "%PDF-1.4 fake")
    _write(smith / "b.docx", "docx bytes")
    _write(
        smith / "Attorney_Notes.txt",
        "Client: Jane Doe\n"
        "Phone: 212-555-0100\n"
        "Travel Dates: March 1-10, 2024\n"
        "Fraud Amount: $4,500\n"
        "Bank: TD Bank\n",
    )
    (root / "Users" / "alice" / "Cases" / "Jones").mkdir(parents=True)
    (root / "Documents").mkdir()
    (root / ".hidden").mkdir()
    _write(root / "readme.txt", "not a folder")
    return root


@pytest.fixture()
def save_dir(tmp_path):
    path = tmp_path / "saved"
    path.mkdir()
    return path


# ── App fixtures ─────────────────────────────────────────────────────────


@pytest.fixture()
def app(drive_root, save_dir, tmp_path):
    """Create a testing app whose drive and save dir live under tmp_path."""
    application = create_app("testing", overrides={
        "CLOUD_DRIVE_ROOT": str(drive_root),
        "SAVE_DIR": str(save_dir),
        "TEMPLATES_DIR": str(tmp_path / "templates"),
    })
    yield application
    application.extensions["complaint_flow"]["store"].stop_sweeper()


@pytest.fixture()
def client(app):
    """Flask test client (no cookie → session id "temp_session")."""
    return app.test_client()


@pytest.fixture()
def session_client(app):
    """Flask test client with a ``session_token`` cookie set."""
    c = app.test_client()
    c.set_cookie("session_token", SESSION_ID)
    return c


@pytest.fixture()
def store(app):
    return app.extensions["complaint_flow"]["store"]

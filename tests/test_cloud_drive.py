"""
Tests: LocalCloudDrive adapter.

Covers root/subfolder/document listings, path conventions, hidden-entry
filtering and the CloudDriveError paths.
"""

import pytest

from complaint_flow.core.exceptions import CloudDriveError
from complaint_flow.integrations.cloud_drive import LocalCloudDrive, document_type

from conftest import CASES, SMITH


@pytest.fixture()
def drive(drive_root):
    return LocalCloudDrive(drive_root)


class TestListings:
    def test_root_folders_skip_files_and_hidden(self, drive):
        folders = drive.list_root_folders()
        assert [f.name for f in folders] == ["Documents", "Users"]
        assert [f.path for f in folders] == ["/Documents", "/Users"]
        assert all(f.is_directory and f.size == 0 for f in folders)
        assert folders[0].id == "folder_0"

    def test_subfolders_are_sorted_and_joined(self, drive):
        folders = drive.list_subfolders(CASES)
        assert [f.name for f in folders] == ["Jones", "Smith"]
        assert folders[1].path == SMITH
        assert folders[1].id.startswith("subfolder_")

    def test_subfolders_accept_trailing_slash(self, drive):
        folders = drive.list_subfolders(CASES + "/")
        assert folders[1].path == SMITH

    def test_documents_carry_type_and_size(self, drive):
        docs = {d.name: d for d in drive.list_documents(SMITH)}
        assert set(docs) == {"Attorney_Notes.txt", "a.pdf", "b.docx"}
        assert docs["a.pdf"].type == "pdf"
        assert docs["b.docx"].type == "docx"
        assert docs["a.pdf"].path == SMITH + "/a.pdf"
        assert docs["a.pdf"].size == len("%PDF-1.4 fake")
        assert docs["a.pdf"].modified is not None
        assert all(d.id.startswith("doc_") for d in docs.values())

    def test_empty_folder_lists_nothing(self, drive):
        assert drive.list_documents(CASES + "/Jones") == []


class TestErrors:
    def test_missing_folder(self, drive):
        with pytest.raises(CloudDriveError, match="folder does not exist"):
            drive.list_documents("/Users/alice/Cases/Nobody")

    def test_file_is_not_a_folder(self, drive):
        with pytest.raises(CloudDriveError):
            drive.list_subfolders("/readme.txt")

    def test_path_cannot_escape_root(self, drive):
        with pytest.raises(CloudDriveError):
            drive.list_documents("/../../etc")

    def test_missing_root(self, tmp_path):
        drive = LocalCloudDrive(tmp_path / "not-synced")
        with pytest.raises(CloudDriveError, match="not available"):
            drive.list_root_folders()


@pytest.mark.parametrize("name,expected", [
    ("Complaint.PDF", "pdf"),
    ("notes.txt", "txt"),
    ("scan.jpeg", "image"),
    ("archive.zip", "zip"),
])
def test_document_type(name, expected):
    assert document_type(name) == expected


def test_document_type_directory():
    assert document_type("Smith", is_directory=True) == "unknown"

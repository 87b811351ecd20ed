"""Cloud-drive adapter - lists the folders and documents a case is built from.

Architecture:
  CloudDrive is the interface the step dispatcher depends on. The default
  implementation, LocalCloudDrive, reads a locally synced drive directory
  (e.g. an iCloud Drive mirror) rooted at ``CLOUD_DRIVE_ROOT``.

Path conventions:
  - Paths handed to and returned from the adapter are drive-relative and
    start with ``/`` (``/Cases/Smith``).
  - A child path is always ``parent + "/" + name``.
  - Hidden entries (leading ``.``) are never listed.
  - Entries are returned sorted by name.

Every failure is raised as CloudDriveError with a message that is safe to
show in an error fragment.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from complaint_flow.core.exceptions import CloudDriveError
from complaint_flow.models.documents import CloudItem

logger = logging.getLogger(__name__)

_EXTENSION_TYPES = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".doc": "doc",
    ".txt": "txt",
    ".jpg": "image",
    ".jpeg": "image",
    ".png": "image",
}


def document_type(name: str, is_directory: bool = False) -> str:
    """Classify a drive entry by extension (``unknown`` for directories)."""
    if is_directory:
        return "unknown"
    ext = os.path.splitext(name)[1].lower()
    return _EXTENSION_TYPES.get(ext, ext.lstrip("."))


class CloudDrive(ABC):
    """Interface for cloud-drive adapters."""

    @abstractmethod
    def list_root_folders(self) -> list[CloudItem]:
        """Top-level folders of the drive."""

    @abstractmethod
    def list_subfolders(self, parent: str) -> list[CloudItem]:
        """Folders directly below *parent*."""

    @abstractmethod
    def list_documents(self, folder: str) -> list[CloudItem]:
        """Every visible entry (files and folders) directly below *folder*."""


class LocalCloudDrive(CloudDrive):
    """CloudDrive backed by a directory on the local filesystem."""

    def __init__(self, root: str | os.PathLike) -> None:
        self.root = Path(root)

    # ── Path resolution ──────────────────────────────────────────────────

    def _require_root(self) -> Path:
        if not self.root.is_dir():
            logger.warning("Cloud drive root %s is missing", self.root)
            raise CloudDriveError("Cloud drive not available or not synced")
        return self.root.resolve()

    def resolve(self, drive_path: str) -> Path:
        """Map a drive-relative path onto the filesystem.

        Raises CloudDriveError if the drive is unavailable, or if the path
        escapes the drive root.
        """
        root = self._require_root()
        relative = (drive_path or "").strip("/")
        full = (root / relative).resolve() if relative else root
        if full != root and root not in full.parents:
            logger.warning("Rejected drive path outside root: %r", drive_path)
            raise CloudDriveError(f"folder does not exist: {drive_path}")
        return full

    def _read_dir(self, drive_path: str) -> list[os.DirEntry]:
        full = self.resolve(drive_path)
        if not full.is_dir():
            raise CloudDriveError(f"folder does not exist: {drive_path}")
        try:
            with os.scandir(full) as it:
                entries = [e for e in it if not e.name.startswith(".")]
        except OSError as exc:
            logger.error("Failed to read drive folder %s: %s", full, exc)
            raise CloudDriveError(f"failed to read folder {drive_path}: {exc}") from exc
        return sorted(entries, key=lambda e: e.name)

    @staticmethod
    def _item(entry: os.DirEntry, item_id: str, path: str) -> CloudItem | None:
        try:
            is_dir = entry.is_dir()
            info = entry.stat()
        except OSError as exc:
            logger.debug("Skipping unreadable drive entry %s: %s", entry.path, exc)
            return None
        return CloudItem(
            id=item_id,
            name=entry.name,
            path=path,
            size=0 if is_dir else info.st_size,
            modified=datetime.fromtimestamp(info.st_mtime, tz=timezone.utc),
            type=document_type(entry.name, is_dir),
            is_directory=is_dir,
        )

    # ── CloudDrive API ───────────────────────────────────────────────────

    def list_root_folders(self) -> list[CloudItem]:
        folders = []
        for i, entry in enumerate(self._read_dir("/")):
            if not entry.is_dir():
                continue
            item = self._item(entry, f"folder_{i}", "/" + entry.name)
            if item:
                folders.append(item)
        logger.info("Found %d root folders in %s", len(folders), self.root)
        return folders

    def list_subfolders(self, parent: str) -> list[CloudItem]:
        subfolders = []
        for i, entry in enumerate(self._read_dir(parent)):
            if not entry.is_dir():
                continue
            item = self._item(entry, f"subfolder_{i}", parent.rstrip("/") + "/" + entry.name)
            if item:
                subfolders.append(item)
        logger.info("Found %d subfolders in %s", len(subfolders), parent)
        return subfolders

    def list_documents(self, folder: str) -> list[CloudItem]:
        documents = []
        for i, entry in enumerate(self._read_dir(folder)):
            item = self._item(entry, f"doc_{i}", folder.rstrip("/") + "/" + entry.name)
            if item:
                documents.append(item)
        logger.info("Found %d documents in %s", len(documents), folder)
        return documents

#!/usr/bin/env python3
"""
Filesystem-backed document store scoped to one athlete directory.

Every read goes to disk and every write replaces the whole file; nothing is
cached between calls. Writes can carry the version returned by
read_versioned() so that a document changed by someone else since it was
read is refused instead of clobbered.
"""

import hashlib
from pathlib import Path
from typing import List, Optional, Tuple

from atomic_write import atomic_write, locked
from constants import get_athlete_dir
from logger import get_logger


class StorageError(Exception):
    """Read/write failure at the storage boundary."""


class StaleDocumentError(StorageError):
    """Document changed between read and write."""


def document_version(text: Optional[str]) -> Optional[str]:
    """Content hash used as an optimistic-concurrency version stamp."""
    if text is None:
        return None
    return hashlib.sha256(text.encode('utf-8')).hexdigest()


class DocumentStore:
    """Read/write text documents by path relative to an athlete root."""

    def __init__(self, root: Path, athlete_id: Optional[str] = None):
        self.root = Path(root)
        self.athlete_id = athlete_id or self.root.name

    @classmethod
    def for_athlete(cls, athlete_id: str) -> 'DocumentStore':
        return cls(get_athlete_dir(athlete_id), athlete_id=athlete_id)

    def __repr__(self) -> str:
        return f"DocumentStore({str(self.root)!r})"

    def resolve(self, relative_path: str) -> Path:
        """Map a relative path onto the root, refusing anything outside it."""
        root = self.root.resolve()
        path = (root / relative_path).resolve()
        try:
            path.relative_to(root)
        except ValueError:
            raise StorageError(f"Path escapes athlete directory: {relative_path}")
        return path

    def exists(self, relative_path: str) -> bool:
        return self.resolve(relative_path).is_file()

    def read(self, relative_path: str) -> Optional[str]:
        """Return the document text, or None if it does not exist."""
        path = self.resolve(relative_path)
        if not path.is_file():
            return None
        try:
            with open(path, 'r', encoding='utf-8', newline='') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {relative_path}: {e}") from e

    def read_versioned(self, relative_path: str) -> Tuple[Optional[str], Optional[str]]:
        """Return (text, version); both None if the document does not exist."""
        text = self.read(relative_path)
        return text, document_version(text)

    def write(self, relative_path: str, text: str, expected_version: Optional[str] = None):
        """
        Replace the document with text.

        If expected_version is given, the write only happens when the
        document on disk still hashes to it; otherwise StaleDocumentError.
        """
        path = self.resolve(relative_path)
        try:
            with locked(path):
                if expected_version is not None:
                    current = self.read(relative_path)
                    if document_version(current) != expected_version:
                        get_logger().warning(
                            "Refusing stale write",
                            athlete=self.athlete_id,
                            path=relative_path,
                        )
                        raise StaleDocumentError(
                            f"{relative_path} changed since it was read"
                        )
                with atomic_write(path) as f:
                    f.write(text)
        except OSError as e:
            raise StorageError(f"Could not write {relative_path}: {e}") from e

        get_logger().debug("Wrote document", athlete=self.athlete_id, path=relative_path, chars=len(text))

    def list(self, directory: str) -> List[str]:
        """
        Names of regular files directly inside directory.

        A missing directory lists as empty. Hidden files (temp and lock
        files) are skipped.
        """
        path = self.resolve(directory)
        if not path.is_dir():
            return []
        try:
            return [
                entry.name for entry in path.iterdir()
                if entry.is_file() and not entry.name.startswith('.')
            ]
        except OSError as e:
            raise StorageError(f"Could not list {directory}: {e}") from e

"""Durable named blob storage.

This module defines the blob store interface consumed by the settings
store and ships file-backed and in-memory implementations of it.
It is the only place that turns an entry identifier into a blob name.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import threading
from typing import Protocol

from core.constants import TEMP_BLOB_SUFFIX
from core.errors import StashBlobError
from core.types import EntryId


@dataclass(frozen=True)
class BlobHandle:
    """Handle to one named blob inside a blob store scope."""

    name: str


class BlobStore(Protocol):
    """Named byte-blob storage scoped to one logical storage area."""

    def open_or_create(self, name: str) -> BlobHandle:
        """Return a handle for a blob, creating an empty one if needed."""

    def write(self, handle: BlobHandle, data: bytes) -> None:
        """Replace the full content of a blob."""

    def read(self, handle: BlobHandle) -> bytes:
        """Return the full content of a blob."""

    def delete(self, name: str) -> None:
        """Delete a blob by name."""

    def exists(self, name: str) -> bool:
        """Return whether a blob with the given name exists."""

    def names(self) -> list[str]:
        """Return names of all blobs in the scope."""


def blob_name_for(entry_id: EntryId) -> str:
    """Return the blob name backing an entry identifier."""
    return str(entry_id)


class FileBlobStore:
    """Filesystem-backed blob store with one file per blob.

    Writes go to a temporary sibling file that is atomically moved over
    the target, so a failed write leaves the previous content intact.
    """

    def __init__(self, root: Path) -> None:
        """Initialize blob store rooted at a scope directory.

        Args:
            root: Directory holding every blob of this scope.

        Raises:
            StashBlobError: If the directory cannot be created.
        """
        self._root = root
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise StashBlobError(
                f"Failed to create blob directory at {root}: {error}. "
                "Check that STASH_DATA_ROOT points to a writable location."
            ) from error

    @property
    def root(self) -> Path:
        return self._root

    def open_or_create(self, name: str) -> BlobHandle:
        path = self._path(name)
        if not path.exists():
            try:
                path.touch()
            except OSError as error:
                raise StashBlobError(
                    f"Failed to create blob '{name}' at {path}: {error}."
                ) from error
        return BlobHandle(name)

    def write(self, handle: BlobHandle, data: bytes) -> None:
        path = self._path(handle.name)
        temp_path = path.with_name(path.name + TEMP_BLOB_SUFFIX)
        try:
            temp_path.write_bytes(data)
            os.replace(temp_path, path)
        except OSError as error:
            _discard(temp_path)
            raise StashBlobError(
                f"Failed to write blob '{handle.name}' at {path}: {error}. "
                "Previous blob content was left unchanged."
            ) from error

    def read(self, handle: BlobHandle) -> bytes:
        path = self._path(handle.name)
        try:
            return path.read_bytes()
        except OSError as error:
            raise StashBlobError(f"Failed to read blob '{handle.name}' at {path}: {error}.") from error

    def delete(self, name: str) -> None:
        path = self._path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as error:
            raise StashBlobError(f"Failed to delete blob '{name}' at {path}: {error}.") from error

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def names(self) -> list[str]:
        return sorted(
            path.name
            for path in self._root.iterdir()
            if path.is_file() and not path.name.endswith(TEMP_BLOB_SUFFIX)
        )

    def _path(self, name: str) -> Path:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise StashBlobError(
                f"Invalid blob name '{name}'. Blob names must be plain file names."
            )
        return self._root / name


class MemoryBlobStore:
    """Dictionary-backed blob store for tests and ephemeral settings."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def open_or_create(self, name: str) -> BlobHandle:
        with self._lock:
            self._blobs.setdefault(name, b"")
        return BlobHandle(name)

    def write(self, handle: BlobHandle, data: bytes) -> None:
        with self._lock:
            self._blobs[handle.name] = bytes(data)

    def read(self, handle: BlobHandle) -> bytes:
        with self._lock:
            try:
                return self._blobs[handle.name]
            except KeyError as error:
                raise StashBlobError(f"Blob '{handle.name}' does not exist.") from error

    def delete(self, name: str) -> None:
        with self._lock:
            self._blobs.pop(name, None)

    def exists(self, name: str) -> bool:
        with self._lock:
            return name in self._blobs

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._blobs)


def _discard(path: Path) -> None:
    """Remove a leftover temporary file if it exists."""
    try:
        path.unlink()
    except OSError:
        return

"""Storage backends.

A backend turns a root (from remote configuration or the locator itself)
plus a path into a StorageHandle. Two backends are built in:

- local: a directory on the local filesystem
- memory: process-wide in-memory directories, for tests and dry runs
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from ..errors import ObjectNotFoundError, StorageError
from .protocols import StorageHandle, StoredObject

logger = logging.getLogger(__name__)


def _check_object_name(name: str) -> None:
    """Reject names that would escape the handle's directory."""
    if not name or not name.strip():
        raise StorageError("object name cannot be empty")
    if "/" in name or "\\" in name or name in (".", ".."):
        raise StorageError(f"Invalid object name: {name}")


def _join_root(root: str, path: str) -> str:
    if not root:
        return path
    return str(PurePosixPath(root) / path.lstrip("/")) if path else root


class LocalStorage(StorageHandle):
    """A directory on the local filesystem.

    The directory is created lazily, on the first write.
    """

    backend_name = "local"

    def __init__(self, root: Path) -> None:
        self.root = root

    def __repr__(self) -> str:
        return f"LocalStorage({str(self.root)!r})"

    def _path(self, name: str) -> Path:
        _check_object_name(name)
        return self.root / name

    def stat(self, name: str) -> StoredObject:
        path = self._path(name)
        try:
            st = path.stat()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"object not found: {path}") from e
        except OSError as e:
            raise StorageError(f"failed to stat {path}: {e}") from e
        if not path.is_file():
            raise ObjectNotFoundError(f"not a file: {path}")
        return StoredObject(handle=self, name=name, size=st.st_size)

    def open_read(self, name: str) -> BinaryIO:
        path = self._path(name)
        try:
            return path.open("rb")
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"object not found: {path}") from e
        except OSError as e:
            raise StorageError(f"failed to open {path}: {e}") from e

    def write(self, name: str, source: BinaryIO) -> StoredObject:
        """Write atomically: copy to a temp file, then rename into place."""
        path = self._path(name)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{name}.", suffix=".partial")
            try:
                with os.fdopen(fd, "wb") as tmp:
                    shutil.copyfileobj(source, tmp)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"failed to write {path}: {e}") from e
        logger.debug(f"Wrote {path}")
        return self.stat(name)

    def remove(self, name: str) -> None:
        path = self._path(name)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"object not found: {path}") from e
        except OSError as e:
            raise StorageError(f"failed to remove {path}: {e}") from e
        logger.debug(f"Removed {path}")


class MemoryStorage(StorageHandle):
    """An in-memory directory.

    Directories are shared by every handle in the process with the same
    root, the way two handles on the same local directory see the same files.
    """

    backend_name = "memory"

    _directories: dict[str, dict[str, bytes]] = {}

    def __init__(self, root: str) -> None:
        self.root = root.strip("/")

    def __repr__(self) -> str:
        return f"MemoryStorage({self.root!r})"

    @property
    def _objects(self) -> dict[str, bytes]:
        return self._directories.setdefault(self.root, {})

    @classmethod
    def reset(cls) -> None:
        """Forget every in-memory directory."""
        cls._directories.clear()

    def stat(self, name: str) -> StoredObject:
        _check_object_name(name)
        if name not in self._objects:
            raise ObjectNotFoundError(f"object not found: {self.root}/{name}")
        return StoredObject(handle=self, name=name, size=len(self._objects[name]))

    def open_read(self, name: str) -> BinaryIO:
        self.stat(name)
        return io.BytesIO(self._objects[name])

    def write(self, name: str, source: BinaryIO) -> StoredObject:
        _check_object_name(name)
        self._objects[name] = source.read()
        return self.stat(name)

    def remove(self, name: str) -> None:
        self.stat(name)
        del self._objects[name]


# Factories take the configured root and the locator path.
BackendFactory = Callable[[str, str], StorageHandle]

BACKENDS: dict[str, BackendFactory] = {
    "local": lambda root, path: LocalStorage(Path(_join_root(root, path) or ".")),
    "memory": lambda root, path: MemoryStorage(_join_root(root, path)),
}


def list_backends() -> list[str]:
    """Names of all supported backends."""
    return sorted(BACKENDS)


def find_backend(name: str) -> bool:
    """Check whether a backend with this name exists."""
    return name in BACKENDS


def create_handle(backend: str, root: str, path: str) -> StorageHandle:
    """Create a handle on `path` under `root` in the named backend.

    Raises:
        StorageError: The backend does not exist
    """
    factory = BACKENDS.get(backend)
    if factory is None:
        raise StorageError(f"backend does not exist: {backend}")
    return factory(root, path)

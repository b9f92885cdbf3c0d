"""Interfaces the command handlers need from storage.

The handlers only ever talk to a StorageDelegate. Tests substitute small
in-memory stubs; production uses BackendStorageDelegate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Protocol, runtime_checkable

from .layout import LayoutMode, QueryFn


class StorageHandle(ABC):
    """A directory in some backend, addressed by a locator string."""

    backend_name: str = ""

    @abstractmethod
    def stat(self, name: str) -> StoredObject:
        """Look up an object in this directory.

        Raises:
            ObjectNotFoundError: No such object
            StorageError: The backend failed
        """

    @abstractmethod
    def open_read(self, name: str) -> BinaryIO:
        """Open an object for reading."""

    @abstractmethod
    def write(self, name: str, source: BinaryIO) -> StoredObject:
        """Create or replace an object with the contents of `source`."""

    @abstractmethod
    def remove(self, name: str) -> None:
        """Delete an object."""


@dataclass(frozen=True)
class StoredObject:
    """An object that exists in a backend."""

    handle: StorageHandle
    name: str
    size: int


@runtime_checkable
class StorageDelegate(Protocol):
    """Everything the protocol handlers ask of the storage layer."""

    def resolve_handle(self, locator: str) -> StorageHandle:
        """Return the handle for a locator such as "remote:prefix/f87/".

        Raises:
            StorageError: The locator names an unknown remote or backend
        """
        ...

    def copy(
        self,
        dst: StorageHandle,
        src: StorageHandle,
        dst_name: str,
        src_name: str,
    ) -> None:
        """Copy `src_name` in `src` to `dst_name` in `dst`.

        Raises:
            ObjectNotFoundError: `src_name` does not exist
            StorageError: The copy failed
        """
        ...

    def lookup_object(self, handle: StorageHandle, key: str) -> StoredObject:
        """Raises ObjectNotFoundError when `key` is absent."""
        ...

    def delete_object(self, obj: StoredObject) -> None:
        ...

    def list_known_remote_names(self) -> set[str]:
        ...

    def find_backend(self, name: str) -> bool:
        ...

    async def build_locator(
        self,
        query: QueryFn,
        layout: LayoutMode,
        key: str,
        remote_name: str,
        prefix: str,
    ) -> str:
        """Locator of the directory holding `key` under the given layout."""
        ...

"""Storage layer used by the command handlers.

Handlers depend only on the StorageDelegate protocol; BackendStorageDelegate
is the implementation used when running as a git-annex remote.
"""

from .backends import LocalStorage, MemoryStorage, find_backend, list_backends
from .delegate import BackendStorageDelegate
from .layout import LayoutMode, all_layout_modes, build_locator, parse_layout_mode
from .locator import ParsedLocator, parse_locator
from .protocols import StorageDelegate, StorageHandle, StoredObject
from .remotes import RemoteDefinition, RemoteRegistry

__all__ = [
    # Interfaces
    "StorageDelegate",
    "StorageHandle",
    "StoredObject",
    # Implementation
    "BackendStorageDelegate",
    "LocalStorage",
    "MemoryStorage",
    "find_backend",
    "list_backends",
    # Remotes
    "RemoteDefinition",
    "RemoteRegistry",
    # Locators and layouts
    "LayoutMode",
    "ParsedLocator",
    "all_layout_modes",
    "build_locator",
    "parse_layout_mode",
    "parse_locator",
]

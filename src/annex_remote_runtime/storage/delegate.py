"""StorageDelegate backed by the built-in backends and the remote registry."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import StorageError
from . import backends
from .layout import LayoutMode, QueryFn, build_locator
from .locator import parse_locator
from .protocols import StorageHandle, StoredObject
from .remotes import RemoteDefinition, RemoteRegistry

logger = logging.getLogger(__name__)


class BackendStorageDelegate:
    """Resolves locators to backend handles and moves objects between them.

    Handles are cached per locator string for the life of the delegate, so
    repeated commands against the same directory reuse one handle.
    """

    def __init__(
        self,
        registry: RemoteRegistry | None = None,
        config_path: Path | None = None,
    ) -> None:
        """Initialize the delegate.

        Args:
            registry: Named remotes; when not given they are loaded from
                      the config file and the environment on first use
            config_path: Remote config file to load instead of the default
        """
        self._registry = registry
        self._config_path = config_path
        self._cache: dict[str, StorageHandle] = {}

    @property
    def registry(self) -> RemoteRegistry:
        if self._registry is None:
            self._registry = RemoteRegistry.load(self._config_path)
        return self._registry

    def resolve_handle(self, locator: str) -> StorageHandle:
        cached = self._cache.get(locator)
        if cached is not None:
            return cached

        parsed = parse_locator(locator)
        if parsed.is_local_path:
            handle: StorageHandle = backends.LocalStorage(Path(parsed.path or "."))
        else:
            if parsed.is_backend:
                definition = RemoteDefinition(
                    type=parsed.backend_name,
                    root=parsed.options.get("root", ""),
                    description=parsed.options.get("description"),
                )
            else:
                definition = self.registry.get(parsed.name)
            handle = backends.create_handle(definition.type, definition.root, parsed.path)

        logger.debug(f"Resolved {locator!r} to {handle!r}")
        self._cache[locator] = handle
        return handle

    def copy(
        self,
        dst: StorageHandle,
        src: StorageHandle,
        dst_name: str,
        src_name: str,
    ) -> None:
        src.stat(src_name)
        try:
            with src.open_read(src_name) as source:
                dst.write(dst_name, source)
        except OSError as e:
            raise StorageError(f"failed to copy {src_name} to {dst_name}: {e}") from e
        logger.debug(f"Copied {src!r}/{src_name} to {dst!r}/{dst_name}")

    def lookup_object(self, handle: StorageHandle, key: str) -> StoredObject:
        return handle.stat(key)

    def delete_object(self, obj: StoredObject) -> None:
        obj.handle.remove(obj.name)

    def list_known_remote_names(self) -> set[str]:
        return self.registry.names()

    def find_backend(self, name: str) -> bool:
        return backends.find_backend(name)

    async def build_locator(
        self,
        query: QueryFn,
        layout: LayoutMode,
        key: str,
        remote_name: str,
        prefix: str,
    ) -> str:
        return await build_locator(query, layout, key, remote_name, prefix)

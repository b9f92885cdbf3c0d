"""Registry of named remotes.

Remotes are read from a YAML file and from environment variables. Later
sources win, so the environment can override the file.

File (``$ANNEX_REMOTE_CONFIG``, default
``~/.config/annex-remote-runtime/remotes.yaml``)::

    remotes:
      mydrive:
        type: local
        root: /mnt/drive/annex

Environment::

    ANNEX_REMOTE_MYDRIVE_TYPE=local
    ANNEX_REMOTE_MYDRIVE_ROOT=/mnt/drive/annex

Names from the environment are lower-cased.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import StorageError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ANNEX_REMOTE_CONFIG"
ENV_PREFIX = "ANNEX_REMOTE_"
ENV_TYPE_SUFFIX = "_TYPE"
ENV_ROOT_SUFFIX = "_ROOT"


def default_config_path() -> Path:
    """Config file location, honoring $ANNEX_REMOTE_CONFIG."""
    configured = os.getenv(CONFIG_ENV_VAR)
    if configured:
        return Path(configured)
    return Path.home() / ".config" / "annex-remote-runtime" / "remotes.yaml"


class RemoteDefinition(BaseModel):
    """How to reach one named remote."""

    model_config = ConfigDict(extra="forbid")

    type: str
    root: str = ""
    description: str | None = None


class RemoteRegistry:
    """Named remotes known to this process."""

    def __init__(self, remotes: Mapping[str, RemoteDefinition] | None = None) -> None:
        self._remotes: dict[str, RemoteDefinition] = dict(remotes or {})

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> RemoteRegistry:
        """Build a registry from the config file and the environment.

        Args:
            config_path: YAML file to read; defaults to default_config_path().
                         A missing file is the same as an empty one.
            environ: Environment to scan; defaults to os.environ

        Raises:
            StorageError: The file is not valid YAML or defines a remote badly
        """
        registry = cls()
        registry.update(load_config_file(config_path or default_config_path()))
        registry.update(remotes_from_environment(os.environ if environ is None else environ))
        return registry

    def update(self, remotes: Mapping[str, RemoteDefinition]) -> None:
        self._remotes.update(remotes)

    def names(self) -> set[str]:
        return set(self._remotes)

    def get(self, name: str) -> RemoteDefinition:
        """Look up a remote.

        Raises:
            StorageError: No remote has this name
        """
        try:
            return self._remotes[name]
        except KeyError:
            raise StorageError(f"remote does not exist: {name}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._remotes


def load_config_file(path: Path) -> dict[str, RemoteDefinition]:
    """Read remote definitions from a YAML file."""
    if not path.exists():
        logger.debug(f"No remote config at {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise StorageError(f"failed to read remote config {path}: {e}") from e

    if not isinstance(data, dict):
        raise StorageError(f"remote config {path} must be a mapping")

    remotes = data.get("remotes") or {}
    if not isinstance(remotes, dict):
        raise StorageError(f"'remotes' in {path} must be a mapping")

    definitions: dict[str, RemoteDefinition] = {}
    for name, raw in remotes.items():
        try:
            definitions[str(name)] = RemoteDefinition.model_validate(raw)
        except ValidationError as e:
            raise StorageError(f"invalid definition for remote {name!r} in {path}: {e}") from e

    logger.debug(f"Loaded {len(definitions)} remotes from {path}")
    return definitions


def remotes_from_environment(environ: Mapping[str, str]) -> dict[str, RemoteDefinition]:
    """Collect remotes defined as ANNEX_REMOTE_<NAME>_TYPE / _ROOT."""
    definitions: dict[str, RemoteDefinition] = {}
    for var, value in environ.items():
        if not (var.startswith(ENV_PREFIX) and var.endswith(ENV_TYPE_SUFFIX)):
            continue
        env_name = var[len(ENV_PREFIX) : -len(ENV_TYPE_SUFFIX)]
        if not env_name:
            continue
        root = environ.get(f"{ENV_PREFIX}{env_name}{ENV_ROOT_SUFFIX}", "")
        definitions[env_name.lower()] = RemoteDefinition(type=value, root=root)
    return definitions

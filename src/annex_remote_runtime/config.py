"""Configuration the remote requires from git-annex.

`required_configs()` is the single source of truth for both LISTCONFIGS
(which tells git-annex what settings exist) and negotiation (GETCONFIG
queries), so the two cannot drift apart.

Negotiation happens lazily, the first time a command needs the values, and
at most once per session: git-annex may send INITREMOTE or PREPARE more than
once, or not at all.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from .errors import MissingConfigError
from .protocol.responses import Response
from .session import ConfigField
from .storage.layout import LayoutMode, describe_layout_modes

if TYPE_CHECKING:
    from .protocol.channel import ProtocolChannel
    from .session import RemoteSession

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "git-annex-rclone"
DEFAULT_LAYOUT = LayoutMode.NODIR.value


class ConfigDefinition(BaseModel):
    """A configuration value required by the remote.

    The first name is canonical; the others are synonyms that git-annex users
    may have set instead, and are tried in order.
    """

    model_config = ConfigDict(frozen=True)

    names: tuple[str, ...] = Field(min_length=1)
    description: str
    target: ConfigField
    default: str | None = None

    @property
    def canonical_name(self) -> str:
        return self.names[0]

    @property
    def synonyms(self) -> tuple[str, ...]:
        return self.names[1:]

    def full_description(self) -> str:
        """Single-line description, prefixed with the synonyms if any."""
        if not self.synonyms:
            return self.description
        return f"(synonyms: {', '.join(self.synonyms)}) {self.description}"


def required_configs() -> list[ConfigDefinition]:
    """Return the configs this remote needs, in negotiation order."""
    return [
        ConfigDefinition(
            names=("rcloneremotename", "target"),
            description=(
                "Name of the rclone remote to use. "
                "Must match a remote known to rclone. "
                "(Note that rclone remotes are a distinct concept from git-annex remotes.)"
            ),
            target=ConfigField.REMOTE_NAME,
        ),
        ConfigDefinition(
            names=("rcloneprefix", "prefix"),
            description=(
                "Directory where rclone will write git-annex content. "
                f'If not specified, defaults to "{DEFAULT_PREFIX}". '
                "This directory will be created on init if it does not exist."
            ),
            target=ConfigField.PREFIX,
            default=DEFAULT_PREFIX,
        ),
        ConfigDefinition(
            names=("rclonelayout", "rclone_layout"),
            description=(
                "Defines where, within the rcloneprefix directory, rclone will write "
                f"git-annex content. Must be one of {describe_layout_modes()}. "
                f'If empty, defaults to "{DEFAULT_LAYOUT}".'
            ),
            target=ConfigField.LAYOUT,
            default=DEFAULT_LAYOUT,
        ),
    ]


async def resolve_configs(session: RemoteSession, channel: ProtocolChannel) -> None:
    """Populate `session.config` from git-annex, once per session.

    For each config, every name is queried in turn until git-annex returns a
    non-empty value. If none does, the default is used.

    Raises:
        ProtocolError: Git-annex answered a GETCONFIG with something other
                       than VALUE
        MissingConfigError: A config without a default has no value
    """
    if session.configs_resolved:
        return

    for definition in required_configs():
        value = ""
        for name in definition.names:
            value = await channel.ask(Response.getconfig(name), final=True)
            if value:
                logger.debug(f"Config {definition.canonical_name} resolved via {name}")
                break

        if not value:
            if definition.default is None:
                raise MissingConfigError(definition.canonical_name)
            logger.debug(f"Config {definition.canonical_name} defaulted to {definition.default!r}")
            value = definition.default

        session.config.assign(definition.target, value)

    session.configs_resolved = True


async def list_configs(channel: ProtocolChannel) -> None:
    """Answer LISTCONFIGS with one CONFIG line per setting, then CONFIGEND."""
    for definition in required_configs():
        await channel.send(Response.config(definition.canonical_name, definition.full_description()))
    await channel.send(Response.config_end())

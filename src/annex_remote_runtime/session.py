"""State of one protocol conversation.

A session lives exactly as long as the process. Nothing here is persisted:
the next process git-annex starts for the same remote begins with a fresh
session and negotiates its configuration again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ConfigField(str, Enum):
    """Fields of RemoteConfig that negotiation may populate."""

    REMOTE_NAME = "remote_name"
    PREFIX = "prefix"
    LAYOUT = "layout"


@dataclass
class RemoteConfig:
    """Configuration values negotiated with git-annex."""

    remote_name: str = ""
    prefix: str = ""
    layout: str = ""

    def assign(self, target: ConfigField, value: str) -> None:
        """Store a negotiated value in the field it belongs to."""
        match target:
            case ConfigField.REMOTE_NAME:
                self.remote_name = value
            case ConfigField.PREFIX:
                self.prefix = value
            case ConfigField.LAYOUT:
                self.layout = value


@dataclass
class ExtensionFlags:
    """Protocol extensions git-annex announced that it supports.

    Git-annex offering an extension does not oblige us to use it.
    """

    info: bool = False
    async_: bool = False
    get_git_remote_name: bool = False
    unavailable_response: bool = False


@dataclass
class RemoteSession:
    """Mutable state shared by the command handlers of one conversation."""

    verbose: bool = False
    extensions: ExtensionFlags = field(default_factory=ExtensionFlags)
    extensions_received: bool = False
    configs_resolved: bool = False
    config: RemoteConfig = field(default_factory=RemoteConfig)

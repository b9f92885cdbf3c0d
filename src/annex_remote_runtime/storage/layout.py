"""Layout modes: where, under the prefix directory, content for a key lives.

The hashed layouts mirror the directory structure git-annex uses for its
own objects. Git-annex computes the hash directory for a key itself; we ask
for it with a DIRHASH or DIRHASH-LOWER query while handling a command.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from ..errors import LocatorError, RemoteError
from ..protocol.responses import Response

logger = logging.getLogger(__name__)

# Sends a query to git-annex and returns the token that follows VALUE.
QueryFn = Callable[[Response], Awaitable[str]]


class LayoutMode(str, Enum):
    """Layout of keys under the prefix directory."""

    # <prefix>/<dirhash-lower>/<key>
    LOWER = "lower"
    # <prefix>/<dirhash-lower>/<key>/<key>
    DIRECTORY = "directory"
    # <prefix>/<key>
    NODIR = "nodir"
    # <prefix>/<dirhash-mixed>/<key>
    MIXED = "mixed"
    # <prefix>/<lowercased dirhash-mixed>/<key>
    FRANKENCASE = "frankencase"

    UNKNOWN = ""


def all_layout_modes() -> list[LayoutMode]:
    """Every valid layout mode, in the order they are documented."""
    return [mode for mode in LayoutMode if mode is not LayoutMode.UNKNOWN]


def describe_layout_modes() -> str:
    """Render the valid modes for help and config descriptions."""
    return "[" + " ".join(mode.value for mode in all_layout_modes()) + "]"


def parse_layout_mode(value: str) -> LayoutMode:
    """Parse a layout mode string, returning UNKNOWN for anything invalid."""
    if not value:
        return LayoutMode.UNKNOWN
    try:
        return LayoutMode(value)
    except ValueError:
        return LayoutMode.UNKNOWN


async def build_locator(
    query: QueryFn,
    layout: LayoutMode,
    key: str,
    remote_name: str,
    prefix: str,
) -> str:
    """Build the locator of the directory that holds `key`.

    Args:
        query: Asks git-annex for a hash directory
        layout: Parsed layout mode; must not be UNKNOWN
        key: Git-annex key
        remote_name: Remote (or ":backend:") to store under; a single
                     trailing colon is ignored
        prefix: Directory under the remote for git-annex content

    Returns:
        Locator string such as "myremote:git-annex-rclone/f87/4d5/"

    Raises:
        ValueError: layout is UNKNOWN
        LocatorError: The hash directory query failed
    """
    if layout is LayoutMode.UNKNOWN:
        raise ValueError("cannot build a locator for an unknown layout mode")

    remote_name = remote_name.removesuffix(":")
    if layout is LayoutMode.NODIR:
        return f"{remote_name}:{prefix}"

    if layout in (LayoutMode.LOWER, LayoutMode.DIRECTORY):
        dirhash_query = Response.dirhash_lower(key)
    else:
        dirhash_query = Response.dirhash(key)
    try:
        dirhash = await query(dirhash_query)
    except RemoteError as e:
        raise LocatorError(f"failed to query dirhash: {e}") from e

    if layout is LayoutMode.FRANKENCASE:
        dirhash = dirhash.lower()

    logger.debug(f"Dirhash for {key} ({layout.value}): {dirhash}")

    if layout is LayoutMode.DIRECTORY:
        return f"{remote_name}:{prefix}/{dirhash}{key}"
    return f"{remote_name}:{prefix}/{dirhash}"

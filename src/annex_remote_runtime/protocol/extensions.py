"""EXTENSIONS negotiation.

Git-annex lists the protocol extensions it supports; we record them and
reply with the ones we will use. We currently use none: ASYNC would need
concurrent transfers, and the others only add optional messages.
"""

from __future__ import annotations

import logging
from enum import Enum

from ..errors import MessageParseError
from ..session import ExtensionFlags
from .message import Message
from .responses import Response

logger = logging.getLogger(__name__)


class Extension(str, Enum):
    """Extensions this remote recognizes."""

    INFO = "INFO"
    ASYNC = "ASYNC"
    GETGITREMOTENAME = "GETGITREMOTENAME"
    UNAVAILABLERESPONSE = "UNAVAILABLERESPONSE"


# Extensions we elect to use, sent back in our EXTENSIONS reply.
ELECTED_EXTENSIONS: list[Extension] = []


def record_extensions(message: Message, flags: ExtensionFlags) -> list[str]:
    """Set a flag for every recognized extension left in `message`.

    Unknown names are ignored so newer git-annex versions keep working.

    Returns:
        The names that were not recognized
    """
    ignored: list[str] = []
    while True:
        try:
            name = message.next_token()
        except MessageParseError:
            break

        match name:
            case Extension.INFO.value:
                flags.info = True
            case Extension.ASYNC.value:
                flags.async_ = True
            case Extension.GETGITREMOTENAME.value:
                flags.get_git_remote_name = True
            case Extension.UNAVAILABLERESPONSE.value:
                flags.unavailable_response = True
            case _:
                ignored.append(name)

    if ignored:
        logger.debug(f"Ignoring unknown extensions: {ignored}")
    return ignored


def extensions_reply() -> Response:
    """Our answer to EXTENSIONS."""
    return Response.extensions([ext.value for ext in ELECTED_EXTENSIONS])

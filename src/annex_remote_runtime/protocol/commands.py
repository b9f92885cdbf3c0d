"""Keywords of the external special remote protocol.

Commands are requests from git-annex to the remote. Queries are requests
the remote sends to git-annex while it is handling a command; git-annex
answers each query with a single VALUE line.
"""

from __future__ import annotations

from enum import Enum

PROTOCOL_VERSION = 1

# Git-annex's Config/Cost.hs calls 200 an "expensive remote".
REMOTE_COST = 200


class CommandType(str, Enum):
    """Commands git-annex may send."""

    # Required
    INITREMOTE = "INITREMOTE"
    PREPARE = "PREPARE"
    EXPORTSUPPORTED = "EXPORTSUPPORTED"
    TRANSFER = "TRANSFER"
    CHECKPRESENT = "CHECKPRESENT"
    REMOVE = "REMOVE"
    ERROR = "ERROR"

    # Optional
    EXTENSIONS = "EXTENSIONS"
    LISTCONFIGS = "LISTCONFIGS"
    GETCOST = "GETCOST"
    GETAVAILABILITY = "GETAVAILABILITY"
    CLAIMURL = "CLAIMURL"
    CHECKURL = "CHECKURL"
    WHEREIS = "WHEREIS"
    GETINFO = "GETINFO"


# Optional requests we answer with UNSUPPORTED-REQUEST.
UNSUPPORTED_COMMANDS = frozenset(
    {
        CommandType.CLAIMURL,
        CommandType.CHECKURL,
        CommandType.WHEREIS,
        CommandType.GETINFO,
    }
)


class TransferMode(str, Enum):
    """Direction of a TRANSFER, from the remote's point of view."""

    STORE = "STORE"
    RETRIEVE = "RETRIEVE"


class QueryType(str, Enum):
    """Queries the remote may send to git-annex mid-command."""

    GETCONFIG = "GETCONFIG"
    DIRHASH = "DIRHASH"
    DIRHASH_LOWER = "DIRHASH-LOWER"


# First token of every answer to a query.
VALUE_KEYWORD = "VALUE"

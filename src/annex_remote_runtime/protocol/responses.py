"""Lines the remote sends to git-annex.

A Response is a keyword followed by space-separated parameters. Failure
responses echo the mode and key of the command they answer so git-annex can
match them to the request; the trailing reason is free text and may contain
spaces.

Example:
    Response.transfer_failure("RETRIEVE", "SHA256E-s1--abc", "not found").to_line()
    # "TRANSFER-FAILURE RETRIEVE SHA256E-s1--abc not found"
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .commands import PROTOCOL_VERSION, QueryType

# A line break inside a parameter would end the line early.
_LINE_BREAK_RE = re.compile(r"[\r\n]+")


class ReplyType(str, Enum):
    """Every keyword the remote may send."""

    VERSION = "VERSION"

    INITREMOTE_SUCCESS = "INITREMOTE-SUCCESS"
    INITREMOTE_FAILURE = "INITREMOTE-FAILURE"
    PREPARE_SUCCESS = "PREPARE-SUCCESS"
    PREPARE_FAILURE = "PREPARE-FAILURE"
    EXPORTSUPPORTED_FAILURE = "EXPORTSUPPORTED-FAILURE"
    TRANSFER_SUCCESS = "TRANSFER-SUCCESS"
    TRANSFER_FAILURE = "TRANSFER-FAILURE"
    CHECKPRESENT_SUCCESS = "CHECKPRESENT-SUCCESS"
    CHECKPRESENT_FAILURE = "CHECKPRESENT-FAILURE"
    CHECKPRESENT_UNKNOWN = "CHECKPRESENT-UNKNOWN"
    REMOVE_SUCCESS = "REMOVE-SUCCESS"
    REMOVE_FAILURE = "REMOVE-FAILURE"

    CONFIG = "CONFIG"
    CONFIGEND = "CONFIGEND"
    COST = "COST"
    AVAILABILITY = "AVAILABILITY"
    UNSUPPORTED_REQUEST = "UNSUPPORTED-REQUEST"
    EXTENSIONS = "EXTENSIONS"
    ERROR = "ERROR"


class Response(BaseModel):
    """A single outbound protocol line."""

    model_config = ConfigDict(frozen=True)

    keyword: str
    params: list[str] = Field(default_factory=list)

    def to_line(self) -> str:
        """Render without the trailing newline."""
        return _LINE_BREAK_RE.sub(" ", " ".join([self.keyword, *self.params]))

    def __str__(self) -> str:
        return self.to_line()

    @classmethod
    def create(cls, keyword: str | ReplyType | QueryType, *params: str | None) -> Response:
        """Factory method; parameters that are None are left out."""
        return cls(
            keyword=keyword.value if isinstance(keyword, Enum) else keyword,
            params=[p for p in params if p is not None],
        )

    # =========================================================================
    # Factory methods for common responses
    # =========================================================================

    @classmethod
    def version(cls) -> Response:
        return cls.create(ReplyType.VERSION, str(PROTOCOL_VERSION))

    @classmethod
    def initremote_success(cls) -> Response:
        return cls.create(ReplyType.INITREMOTE_SUCCESS)

    @classmethod
    def initremote_failure(cls, reason: str) -> Response:
        return cls.create(ReplyType.INITREMOTE_FAILURE, reason)

    @classmethod
    def prepare_success(cls) -> Response:
        return cls.create(ReplyType.PREPARE_SUCCESS)

    @classmethod
    def prepare_failure(cls, reason: str) -> Response:
        return cls.create(ReplyType.PREPARE_FAILURE, reason)

    @classmethod
    def exportsupported_failure(cls) -> Response:
        return cls.create(ReplyType.EXPORTSUPPORTED_FAILURE)

    @classmethod
    def transfer_success(cls, mode: str, key: str) -> Response:
        return cls.create(ReplyType.TRANSFER_SUCCESS, mode, key)

    @classmethod
    def transfer_failure(
        cls,
        mode: str | None,
        key: str | None,
        reason: str | None = None,
    ) -> Response:
        """Create a TRANSFER-FAILURE.

        Mode and key are None only when they could not be parsed from the
        request in the first place.
        """
        return cls.create(ReplyType.TRANSFER_FAILURE, mode, key, reason)

    @classmethod
    def checkpresent_success(cls, key: str) -> Response:
        return cls.create(ReplyType.CHECKPRESENT_SUCCESS, key)

    @classmethod
    def checkpresent_failure(cls, key: str) -> Response:
        """The key is definitely not present."""
        return cls.create(ReplyType.CHECKPRESENT_FAILURE, key)

    @classmethod
    def checkpresent_unknown(cls, key: str, reason: str | None = None) -> Response:
        """Presence could not be determined; git-annex must not assume absence."""
        return cls.create(ReplyType.CHECKPRESENT_UNKNOWN, key, reason)

    @classmethod
    def remove_success(cls, key: str) -> Response:
        return cls.create(ReplyType.REMOVE_SUCCESS, key)

    @classmethod
    def remove_failure(cls, key: str, reason: str | None = None) -> Response:
        return cls.create(ReplyType.REMOVE_FAILURE, key, reason)

    @classmethod
    def config(cls, name: str, description: str) -> Response:
        return cls.create(ReplyType.CONFIG, name, description)

    @classmethod
    def config_end(cls) -> Response:
        return cls.create(ReplyType.CONFIGEND)

    @classmethod
    def cost(cls, cost: int) -> Response:
        return cls.create(ReplyType.COST, str(cost))

    @classmethod
    def availability_global(cls) -> Response:
        return cls.create(ReplyType.AVAILABILITY, "GLOBAL")

    @classmethod
    def unsupported_request(cls) -> Response:
        return cls.create(ReplyType.UNSUPPORTED_REQUEST)

    @classmethod
    def extensions(cls, names: list[str] | None = None) -> Response:
        return cls.create(ReplyType.EXTENSIONS, *(names or []))

    @classmethod
    def error(cls, message: str) -> Response:
        return cls.create(ReplyType.ERROR, message)

    # =========================================================================
    # Queries (answered by git-annex with a VALUE line)
    # =========================================================================

    @classmethod
    def getconfig(cls, name: str) -> Response:
        return cls.create(QueryType.GETCONFIG, name)

    @classmethod
    def dirhash(cls, key: str) -> Response:
        """Ask for the mixed-case hash directory of a key."""
        return cls.create(QueryType.DIRHASH, key)

    @classmethod
    def dirhash_lower(cls, key: str) -> Response:
        return cls.create(QueryType.DIRHASH_LOWER, key)

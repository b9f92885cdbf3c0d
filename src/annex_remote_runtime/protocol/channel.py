"""Interface between command handlers and the transport that carries them.

Handlers never touch streams directly. They send responses, and when they
need something from git-annex mid-command they ask a query and block for
the single VALUE line that answers it.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .message import Message
from .responses import Response


@runtime_checkable
class ProtocolChannel(Protocol):
    """A strictly alternating line channel to git-annex."""

    async def send(self, response: Response) -> None:
        """Write one line."""
        ...

    async def get_message(self) -> Message | None:
        """Read one line, or None when git-annex has closed the stream."""
        ...

    async def ask(self, query: Response | str, *, final: bool = False) -> str:
        """Send a query and return the value from git-annex's VALUE answer.

        Args:
            query: The query (GETCONFIG, DIRHASH, ...) as a Response or
                   a raw line
            final: Return the rest of the answer verbatim instead of the
                   single token that follows VALUE

        Raises:
            ProtocolError: The answer was not a VALUE line, or another
                           query is still waiting for its answer
        """
        ...

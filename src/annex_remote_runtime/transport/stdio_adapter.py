"""stdio Protocol Adapter.

Speaks the external special remote protocol on stdin/stdout. Git-annex
starts the remote as a subprocess and talks to it one line at a time.

Wire format (UTF-8, one message per line):
- The remote sends "VERSION 1" first, unprompted.
- Git-annex sends a command; the remote answers with one or more lines.
- While handling a command the remote may send a query (GETCONFIG,
  DIRHASH, ...) and git-annex answers it with a single VALUE line.

Cross-platform considerations:
- Output newlines are always LF (\\n), never CRLF
- Input lines are split on LF only; a CR before it is stripped
- Bytes that are not valid UTF-8 (file names, usually) survive a
  round trip through surrogate escapes
- git-annex closing stdin is the normal way a session ends
"""

from __future__ import annotations

import asyncio
import io
import logging
import os
import sys
from typing import TYPE_CHECKING, BinaryIO

from ..errors import ProtocolError
from ..protocol.commands import VALUE_KEYWORD
from ..protocol.handler import CommandHandler
from ..protocol.message import Message
from ..protocol.responses import Response
from ..session import RemoteSession

if TYPE_CHECKING:
    from ..storage.protocols import StorageDelegate

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"

# Newline character (always LF for cross-platform consistency)
NEWLINE = "\n"


def _ensure_binary_stream(stream: BinaryIO | None, default_fd: int) -> BinaryIO:
    """Return `stream`, or the raw binary stdio stream for `default_fd`."""
    if stream is not None:
        return stream

    # Get raw binary stream, bypassing any text wrapper
    if default_fd == 0:
        return sys.stdin.buffer
    elif default_fd == 1:
        return sys.stdout.buffer
    else:
        return sys.stderr.buffer


class StdioProtocolAdapter:
    """One git-annex session over a pair of binary streams.

    The adapter owns the streams and implements the ProtocolChannel the
    command handler talks through: `send`, `get_message` and `ask`.

    Usage:
        adapter = StdioProtocolAdapter(storage=BackendStorageDelegate())
        await adapter.run()  # Returns when git-annex closes stdin

    Example session:
        ← VERSION 1
        → PREPARE
        ← GETCONFIG rcloneremotename
        → VALUE mydrive
        ...
        ← PREPARE-SUCCESS
        → CHECKPRESENT SHA256E-s1--abc
        ← CHECKPRESENT-FAILURE SHA256E-s1--abc
    """

    def __init__(
        self,
        storage: StorageDelegate,
        stdin: BinaryIO | None = None,
        stdout: BinaryIO | None = None,
        stderr: BinaryIO | None = None,
        verbose: bool = False,
        allow_backend_locators: bool = True,
    ):
        """Initialize stdio adapter.

        Args:
            storage: Storage collaborator for the command handlers
            stdin: Binary input stream (default: sys.stdin.buffer)
            stdout: Binary output stream (default: sys.stdout.buffer)
            stderr: Binary stream for the verbose transcript
                    (default: sys.stderr.buffer)
            verbose: Write a transcript of every line sent and received
            allow_backend_locators: See CommandHandler
        """
        self._stdin = _ensure_binary_stream(stdin, 0)
        self._stdout = _ensure_binary_stream(stdout, 1)
        self._stderr = _ensure_binary_stream(stderr, 2)

        self._reader = io.TextIOWrapper(
            self._stdin,
            encoding=ENCODING,
            errors=ENCODING_ERRORS,
            newline=NEWLINE,  # Split on LF only, keep line endings
        )
        self._writer = io.TextIOWrapper(
            self._stdout,
            encoding=ENCODING,
            errors=ENCODING_ERRORS,
            newline=NEWLINE,  # Always output LF
            write_through=True,
        )
        self._transcript = io.TextIOWrapper(
            self._stderr,
            encoding=ENCODING,
            errors="backslashreplace",
            newline=NEWLINE,
            write_through=True,
        )

        self.session = RemoteSession(verbose=verbose)
        self._handler = CommandHandler(
            self,
            storage,
            session=self.session,
            allow_backend_locators=allow_backend_locators,
        )
        self._pending_query: str | None = None

    async def run(self) -> None:
        """Run the session until git-annex closes stdin.

        Raises:
            RemoteError: The session ended abnormally. Any failure response
                         has already been sent.
        """
        # The remote sends the first message.
        await self.send(Response.version())

        while True:
            message = await self.get_message()
            if message is None:
                logger.debug("stdin closed, shutting down")
                break
            await self._handler.handle(message)

    # =========================================================================
    # ProtocolChannel
    # =========================================================================

    async def send(self, response: Response | str) -> None:
        """Write one line to git-annex."""
        line = response if isinstance(response, str) else response.to_line()
        self._writer.write(line + NEWLINE)
        self._writer.flush()
        self._log_transcript("sent", line + NEWLINE)

    async def get_message(self) -> Message | None:
        """Read one line from git-annex.

        Returns:
            The message, or None when stdin was closed between messages

        Raises:
            ProtocolError: Stdin was closed in the middle of a line
        """
        line = await self._read_line()
        if not line:
            # Git-annex closes stdin when it is done with us.
            return None
        self._log_transcript("received", line)
        if not line.endswith(NEWLINE):
            raise ProtocolError(f"expected message to end with newline: {line!r}")
        return Message(line)

    async def ask(self, query: Response | str, *, final: bool = False) -> str:
        """Send a query and wait for git-annex's VALUE answer.

        The channel alternates strictly, so a second query may not start
        until the first one is answered.
        """
        line = query if isinstance(query, str) else query.to_line()
        if self._pending_query is not None:
            raise ProtocolError(
                f"cannot send {line!r} while {self._pending_query!r} is unanswered"
            )

        self._pending_query = line
        try:
            await self.send(line)
            message = await self.get_message()
            if message is None:
                raise ProtocolError(f"git-annex closed stdin before answering {line!r}")
            keyword = message.next_token()
            if keyword != VALUE_KEYWORD:
                raise ProtocolError(f"expected VALUE keyword, but got {keyword!r}")
            return message.final_token() if final else message.next_token()
        finally:
            self._pending_query = None

    def close(self) -> None:
        """Flush and let go of the streams without closing them.

        The wrappers would otherwise close the underlying streams (the
        process's own stdio, usually) when they are garbage collected.
        """
        for wrapper in (self._writer, self._transcript, self._reader):
            try:
                wrapper.flush()
                wrapper.detach()
            except ValueError:
                # Already detached
                pass

    # =========================================================================
    # I/O
    # =========================================================================

    async def _read_line(self) -> str:
        """Read a line from stdin without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._reader.readline)

    def _log_transcript(self, direction: str, line: str) -> None:
        logger.debug(f"remote {direction} {line!r}")
        if self.session.verbose:
            self._transcript.write(f"remote {direction} {line!r}{NEWLINE}")
            self._transcript.flush()


async def run_stdio_adapter(
    storage: StorageDelegate,
    verbose: bool = False,
    allow_backend_locators: bool = True,
) -> None:
    """Run one session on the process's stdin/stdout.

    On a fatal error an ERROR line is sent to git-annex before the error
    propagates, so the reason shows up in git-annex's output.
    """
    adapter = StdioProtocolAdapter(
        storage,
        verbose=verbose,
        allow_backend_locators=allow_backend_locators,
    )
    try:
        await adapter.run()
    except Exception as e:
        logger.exception(f"Session failed: {e}")
        await adapter.send(Response.error(" ".join(str(e).splitlines())))
        raise
    finally:
        adapter.close()


def prepare_stdio() -> None:
    """Put stdio in binary mode where the platform needs it."""
    # On Windows, ensure binary mode for stdin/stdout
    if sys.platform == "win32":
        import msvcrt

        msvcrt.setmode(sys.stdin.fileno(), os.O_BINARY)
        msvcrt.setmode(sys.stdout.fileno(), os.O_BINARY)
        msvcrt.setmode(sys.stderr.fileno(), os.O_BINARY)

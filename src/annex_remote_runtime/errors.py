"""Exception hierarchy for the special remote.

Protocol violations end the session. Negative-but-legal outcomes (a missing
object, an unsupported request) are answered on the wire and only some of
them end the session; see the command handler for which.
"""

from __future__ import annotations


class RemoteError(Exception):
    """Base class for all errors raised by the remote."""

    pass


class ProtocolError(RemoteError):
    """The controller sent something the protocol does not allow."""

    pass


class MessageParseError(ProtocolError):
    """A message could not be split into the expected tokens."""

    pass


class MalformedMessageError(MessageParseError):
    """A message contained an empty space-delimited token."""

    pass


class TokenizerExhaustedError(MessageParseError):
    """No tokens remain in the message.

    Callers that read a variable number of parameters catch it to stop.
    """

    pass


class UnexpectedCommandError(ProtocolError):
    """The controller sent a command this remote does not know."""

    def __init__(self, line: str) -> None:
        super().__init__(f"received unexpected message from git-annex: {line}")
        self.line = line


class ControllerError(RemoteError):
    """The controller reported an error with an ERROR message."""

    def __init__(self, message: str) -> None:
        super().__init__(f"received error message from git-annex: {message}")
        self.controller_message = message


class MissingConfigError(RemoteError):
    """A required config had no value and no default."""

    def __init__(self, name: str) -> None:
        super().__init__(f"did not receive a non-empty config value for {name!r}")
        self.name = name


class CommandFailedError(RemoteError):
    """A command handler already replied with a failure and gives up."""

    pass


class StorageError(RemoteError):
    """The storage backend could not complete an operation."""

    pass


class ObjectNotFoundError(StorageError):
    """The requested object does not exist in the backend."""

    pass


class LocatorError(StorageError):
    """A backend locator string could not be parsed or built."""

    pass

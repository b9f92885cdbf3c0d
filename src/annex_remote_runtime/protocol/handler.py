"""Command Handler - the remote's side of the external special remote protocol.

Dispatches each message from git-annex to a handler method. Handlers write
their responses (and any queries) through a ProtocolChannel and use a
StorageDelegate for the actual content.

Error policy:
    A handler that cannot complete a command first sends the protocol's
    failure response for that command, then raises. The response is the only
    record git-annex keeps once the process exits. The exceptions are the
    expected negative outcomes: an object missing during RETRIEVE,
    CHECKPRESENT or REMOVE, and unsupported optional requests. Those are
    answered and the session continues.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, NoReturn

from ..config import list_configs, resolve_configs
from ..errors import (
    CommandFailedError,
    ControllerError,
    LocatorError,
    MessageParseError,
    ObjectNotFoundError,
    ProtocolError,
    RemoteError,
    StorageError,
    UnexpectedCommandError,
)
from ..session import ExtensionFlags, RemoteSession
from ..storage.layout import LayoutMode, parse_layout_mode
from ..storage.locator import parse_locator
from .commands import REMOTE_COST, UNSUPPORTED_COMMANDS, CommandType, TransferMode
from .extensions import extensions_reply, record_extensions
from .responses import Response

if TYPE_CHECKING:
    from ..storage.protocols import StorageDelegate
    from .channel import ProtocolChannel
    from .message import Message

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles git-annex commands for one session.

    Usage:
        handler = CommandHandler(channel, storage)

        while (message := await channel.get_message()) is not None:
            await handler.handle(message)

    Commands are processed one at a time; a handler may ask git-annex
    questions through the channel while it runs, but never more than one at
    a time.
    """

    def __init__(
        self,
        channel: ProtocolChannel,
        storage: StorageDelegate,
        session: RemoteSession | None = None,
        allow_backend_locators: bool = True,
    ) -> None:
        """Initialize handler.

        Args:
            channel: Line channel to git-annex
            storage: Storage collaborator that holds the content
            session: Session state; a fresh one when not given
            allow_backend_locators: Accept ":backend:" strings as the remote
                                    name in INITREMOTE
        """
        self._channel = channel
        self._storage = storage
        self.session = session or RemoteSession()
        self._allow_backend_locators = allow_backend_locators

    async def handle(self, message: Message) -> None:
        """Process one message from git-annex.

        Raises:
            ProtocolError: The message is malformed or not a known command
            ControllerError: Git-annex reported an error
            RemoteError: A command failed after its failure response was sent
        """
        line = message.line.rstrip("\r\n")
        try:
            command = message.next_token()
        except MessageParseError as e:
            raise ProtocolError(f"failed to parse command: {line!r}") from e

        logger.debug(f"Handling command: {command}")

        match command:
            # Git-annex requires that these requests are supported.
            case CommandType.INITREMOTE.value:
                await self._initremote()

            case CommandType.PREPARE.value:
                await self._prepare()

            case CommandType.EXPORTSUPPORTED.value:
                await self._channel.send(Response.exportsupported_failure())

            case CommandType.TRANSFER.value:
                await self._transfer(message)

            case CommandType.CHECKPRESENT.value:
                await self._checkpresent(message)

            case CommandType.REMOVE.value:
                await self._remove(message)

            case CommandType.ERROR.value:
                raise ControllerError(message.final_token())

            # These requests are optional.
            case CommandType.EXTENSIONS.value:
                await self._extensions(message)

            case CommandType.LISTCONFIGS.value:
                await list_configs(self._channel)

            case CommandType.GETCOST.value:
                await self._channel.send(Response.cost(REMOTE_COST))

            case CommandType.GETAVAILABILITY.value:
                # Content lives in a cloud service, not on a local drive.
                await self._channel.send(Response.availability_global())

            case _ if command in {c.value for c in UNSUPPORTED_COMMANDS}:
                await self._channel.send(Response.unsupported_request())

            case _:
                raise UnexpectedCommandError(line)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _fail(
        self,
        response: Response,
        error: str,
        cause: BaseException | None = None,
    ) -> NoReturn:
        """Send a failure response, then abort the command."""
        await self._channel.send(response)
        logger.debug(f"Command failed: {error}")
        raise CommandFailedError(error) from cause

    async def _resolve_configs(self) -> None:
        await resolve_configs(self.session, self._channel)

    async def _remote_locator(self, key: str) -> str:
        """Locator of the remote directory that holds `key`.

        Raises:
            LocatorError: The layout is invalid or the locator could not be built
        """
        config = self.session.config
        layout = parse_layout_mode(config.layout)
        if layout is LayoutMode.UNKNOWN:
            raise LocatorError(f"error parsing layout mode: {config.layout!r}")
        try:
            return await self._storage.build_locator(
                self._channel.ask, layout, key, config.remote_name, config.prefix
            )
        except LocatorError as e:
            raise LocatorError(f"error building locator: {e}") from e

    # =========================================================================
    # Setup Commands
    # =========================================================================

    async def _initremote(self) -> None:
        """Handle INITREMOTE.

        Validates the configured remote name. Git-annex may send INITREMOTE
        again in later sessions (for instance when the remote is enabled in
        another clone), and does not send it at all in most sessions, so
        nothing here may be relied upon by other handlers.
        """
        try:
            await self._resolve_configs()
        except RemoteError as e:
            await self._fail(
                Response.initremote_failure(f"failed to get configs: {e}"),
                f"failed to get configs: {e}",
                e,
            )

        remote_name = self.session.config.remote_name

        try:
            known_remotes = self._storage.list_known_remote_names()
        except StorageError as e:
            await self._fail(
                Response.initremote_failure(f"failed to list remotes: {e}"),
                f"failed to list remotes: {e}",
                e,
            )

        # A bare path is not a remote name; that is what the prefix is for.
        if remote_name.removesuffix(":") in known_remotes:
            await self._channel.send(Response.initremote_success())
            return

        # ":backend:" strings are accepted as well, without a path.
        if not (self._allow_backend_locators and remote_name.startswith(":")):
            await self._fail(
                Response.initremote_failure(f"remote does not exist: {remote_name}"),
                f"remote does not exist: {remote_name}",
            )

        try:
            parsed = parse_locator(remote_name)
        except LocatorError as e:
            await self._fail(
                Response.initremote_failure(f"remote could not be parsed as a backend: {remote_name}"),
                f"remote could not be parsed as a backend: {remote_name}",
                e,
            )

        if parsed.path:
            await self._fail(
                Response.initremote_failure(f"backend must not have a path: {remote_name}"),
                f"backend must not have a path: {remote_name}",
            )

        # Search for "local", not ":local,description=hello".
        backend_name = parsed.backend_name
        if not self._storage.find_backend(backend_name):
            await self._fail(
                Response.initremote_failure(f"backend does not exist: {backend_name}"),
                f"backend does not exist: {backend_name}",
            )

        await self._channel.send(Response.initremote_success())

    async def _prepare(self) -> None:
        try:
            await self._resolve_configs()
        except RemoteError as e:
            await self._fail(
                Response.prepare_failure("Error getting configs"),
                f"error getting configs: {e}",
                e,
            )
        await self._channel.send(Response.prepare_success())

    async def _extensions(self, message: Message) -> None:
        """Record the extensions git-annex offers and reply with ours."""
        if self.session.extensions_received:
            # Flags are fixed by the first EXTENSIONS message.
            logger.warning("Received EXTENSIONS more than once; keeping the first set")
            record_extensions(message, ExtensionFlags())
        else:
            record_extensions(message, self.session.extensions)
            self.session.extensions_received = True
        await self._channel.send(extensions_reply())

    # =========================================================================
    # Content Commands
    # =========================================================================

    async def _transfer(self, message: Message) -> None:
        """Handle TRANSFER STORE|RETRIEVE <key> <file>."""
        try:
            mode = message.next_token()
        except MessageParseError as e:
            await self._fail(
                Response.transfer_failure(None, None, "failed to parse direction"),
                f"malformed arguments for TRANSFER: {e}",
                e,
            )
        try:
            key = message.next_token()
        except MessageParseError as e:
            await self._fail(
                Response.transfer_failure(None, None, "failed to parse key"),
                f"malformed arguments for TRANSFER: {e}",
                e,
            )
        local_file = message.final_token()
        if not local_file:
            await self._fail(
                Response.transfer_failure(None, None, "failed to parse file path"),
                "failed to parse file path",
            )

        if mode not in (TransferMode.STORE.value, TransferMode.RETRIEVE.value):
            await self._fail(
                Response.transfer_failure(mode, key, "unrecognized mode"),
                f"received malformed TRANSFER mode: {mode}",
            )

        try:
            await self._resolve_configs()
        except RemoteError as e:
            await self._fail(
                Response.transfer_failure(mode, key, "failed to get configs"),
                f"error getting configs: {e}",
                e,
            )

        try:
            locator = await self._remote_locator(key)
        except LocatorError as e:
            await self._fail(Response.transfer_failure(mode, key, str(e)), str(e), e)

        try:
            remote = self._storage.resolve_handle(locator)
        except StorageError as e:
            await self._fail(
                Response.transfer_failure(mode, key, "failed to get remote fs"),
                f"failed to get remote fs {locator!r}: {e}",
                e,
            )

        local_path = os.path.abspath(local_file)
        try:
            local = self._storage.resolve_handle(os.path.dirname(local_path))
        except StorageError as e:
            await self._fail(
                Response.transfer_failure(mode, key, "failed to get local fs"),
                f"failed to get local fs: {e}",
                e,
            )
        local_name = os.path.basename(local_path)

        if mode == TransferMode.STORE.value:
            try:
                self._storage.copy(remote, local, key, local_name)
            except StorageError as e:
                await self._fail(
                    Response.transfer_failure(mode, key, f"failed to copy file: {e}"),
                    f"failed to store {key}: {e}",
                    e,
                )
        else:
            try:
                self._storage.copy(local, remote, local_name, key)
            except ObjectNotFoundError:
                # Missing on the remote: git-annex will look elsewhere.
                await self._channel.send(Response.transfer_failure(mode, key, "not found"))
                return
            except StorageError as e:
                await self._fail(
                    Response.transfer_failure(mode, key, f"failed to copy file: {e}"),
                    f"failed to retrieve {key}: {e}",
                    e,
                )

        await self._channel.send(Response.transfer_success(mode, key))

    async def _checkpresent(self, message: Message) -> None:
        """Handle CHECKPRESENT <key>.

        FAILURE means the key is definitely absent. Anything that prevents a
        definite answer is UNKNOWN, so git-annex never drops its last copy on
        the strength of an error.
        """
        key = message.final_token()
        if not key:
            raise ProtocolError("failed to parse key for CHECKPRESENT")

        try:
            await self._resolve_configs()
        except RemoteError as e:
            await self._fail(
                Response.checkpresent_unknown(key, "failed to get configs"),
                f"error getting configs: {e}",
                e,
            )

        try:
            locator = await self._remote_locator(key)
        except LocatorError as e:
            await self._fail(Response.checkpresent_unknown(key, str(e)), str(e), e)

        try:
            remote = self._storage.resolve_handle(locator)
        except StorageError as e:
            await self._fail(
                Response.checkpresent_unknown(key, "failed to get remote fs"),
                f"failed to get remote fs {locator!r}: {e}",
                e,
            )

        try:
            self._storage.lookup_object(remote, key)
        except ObjectNotFoundError:
            await self._channel.send(Response.checkpresent_failure(key))
            return
        except StorageError as e:
            await self._fail(
                Response.checkpresent_unknown(key, "error finding file"),
                f"error finding {key}: {e}",
                e,
            )

        await self._channel.send(Response.checkpresent_success(key))

    async def _remove(self, message: Message) -> None:
        """Handle REMOVE <key>.

        Removing a key that is already absent succeeds.
        """
        key = message.final_token()
        if not key:
            raise ProtocolError("failed to parse key for REMOVE")

        try:
            await self._resolve_configs()
        except RemoteError as e:
            await self._fail(
                Response.remove_failure(key, "failed to get configs"),
                f"error getting configs: {e}",
                e,
            )

        try:
            locator = await self._remote_locator(key)
        except LocatorError as e:
            await self._fail(Response.remove_failure(key, str(e)), str(e), e)

        try:
            remote = self._storage.resolve_handle(locator)
        except StorageError as e:
            await self._fail(
                Response.remove_failure(key, "failed to get remote fs"),
                f"error getting remote fs {locator!r}: {e}",
                e,
            )

        try:
            obj = self._storage.lookup_object(remote, key)
        except ObjectNotFoundError:
            await self._channel.send(Response.remove_success(key))
            return
        except StorageError as e:
            await self._fail(
                Response.remove_failure(key, f"error getting new fs object: {e}"),
                f"error getting new fs object: {e}",
                e,
            )

        try:
            self._storage.delete_object(obj)
        except ObjectNotFoundError:
            logger.debug(f"{key} disappeared before it could be removed")
        except StorageError as e:
            await self._fail(
                Response.remove_failure(key, "error deleting file"),
                f"error deleting file: {key!r}",
                e,
            )

        await self._channel.send(Response.remove_success(key))

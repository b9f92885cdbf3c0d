"""Protocol layer for the git-annex external special remote protocol.

Key concepts:
- Commands: git-annex → remote requests (INITREMOTE, TRANSFER, ...)
- Responses: remote → git-annex answers, echoing the key they concern
- Queries: remote → git-annex questions asked mid-command, each answered
  by exactly one VALUE line

Every message is one UTF-8 line. The first token is the keyword; the last
parameter of some messages may contain spaces.
"""

from .channel import ProtocolChannel
from .commands import CommandType, QueryType, TransferMode
from .message import Message
from .responses import ReplyType, Response

# Note: the handler is imported separately to avoid circular imports
# Use: from annex_remote_runtime.protocol.handler import CommandHandler

__all__ = [
    "CommandType",
    "Message",
    "ProtocolChannel",
    "QueryType",
    "ReplyType",
    "Response",
    "TransferMode",
]

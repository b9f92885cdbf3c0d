"""Transports that carry the protocol.

Git-annex only ever runs external remotes as subprocesses, so stdio is the
one transport.
"""

from .stdio_adapter import StdioProtocolAdapter, run_stdio_adapter

__all__ = [
    "StdioProtocolAdapter",
    "run_stdio_adapter",
]

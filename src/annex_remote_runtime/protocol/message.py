"""Tokenizer for protocol lines.

Messages are separated by spaces, but the final parameter of some commands
(a file path, an error message, a config value) may itself contain spaces.
We cannot know how many parameters to split off until the first one (the
command keyword) has been read, so parsing is incremental.
"""

from __future__ import annotations

from ..errors import MalformedMessageError, TokenizerExhaustedError

LINE_ENDINGS = "\r\n"


class Message:
    """One protocol line, consumed token by token.

    Usage:
        message = Message("TRANSFER STORE SHA256E-s1--abc /tmp/my file")
        message.next_token()   # "TRANSFER"
        message.next_token()   # "STORE"
        message.next_token()   # "SHA256E-s1--abc"
        message.final_token()  # "/tmp/my file"
    """

    def __init__(self, line: str) -> None:
        self.line = line

    def __repr__(self) -> str:
        return f"Message({self.line!r})"

    def next_token(self) -> str:
        """Consume the next space-delimited token.

        Raises:
            TokenizerExhaustedError: Nothing remains to parse
            MalformedMessageError: An empty token precedes a separator
        """
        self.line = self.line.rstrip(LINE_ENDINGS)
        if not self.line:
            raise TokenizerExhaustedError("nothing remains to parse")

        before, found, after = self.line.partition(" ")
        if found:
            if not before:
                raise MalformedMessageError(
                    f"found an empty space-delimited parameter in line: {self.line!r}"
                )
            self.line = after
            return before

        remaining = self.line
        self.line = ""
        return remaining

    def final_token(self) -> str:
        """Consume everything that remains, spaces included."""
        self.line = self.line.rstrip(LINE_ENDINGS)
        param = self.line
        self.line = ""
        return param

    def remaining_tokens(self) -> list[str]:
        """Consume all remaining space-delimited tokens."""
        tokens: list[str] = []
        while True:
            try:
                tokens.append(self.next_token())
            except TokenizerExhaustedError:
                return tokens

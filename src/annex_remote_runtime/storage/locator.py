"""Parsing of locator strings.

Three forms are understood:

    remote:path              a configured remote
    :backend[,k=v,...]:path  a backend created on the fly, with options
    path                     a directory on the local filesystem
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field

from ..errors import LocatorError

# Remote names: word characters plus . + @ -, single spaces allowed inside.
_REMOTE_NAME = r"[\w.+@-]+(?: [\w.+@-]+)*"
_REMOTE_RE = re.compile(rf"^({_REMOTE_NAME}):(.*)$", re.DOTALL)
_BACKEND_RE = re.compile(r"^[\w-]+$")
# On Windows "C:\dir" and "C:/dir" are paths, not remote "C".
_DRIVE_RE = re.compile(r"^[A-Za-z]:(?:[\\/]|$)")


@dataclass(frozen=True)
class ParsedLocator:
    """A locator split into its parts.

    `name` is "" for a local path, starts with ":" for an on-the-fly
    backend (options included, e.g. ":local,description=x"), and is the
    remote name otherwise.
    """

    name: str
    path: str
    options: dict[str, str] = field(default_factory=dict)

    @property
    def is_local_path(self) -> bool:
        return self.name == ""

    @property
    def is_backend(self) -> bool:
        return self.name.startswith(":")

    @property
    def backend_name(self) -> str:
        """Backend of an on-the-fly locator, without colon or options."""
        return self.name.removeprefix(":").split(",", 1)[0]


def parse_locator(locator: str) -> ParsedLocator:
    """Split a locator into name, path and options.

    Raises:
        LocatorError: An on-the-fly backend locator is malformed
    """
    if locator.startswith(":"):
        end = locator.find(":", 1)
        if end < 0:
            raise LocatorError(f"backend locator is missing its closing colon: {locator!r}")
        name = locator[:end]
        backend, _, raw_options = name[1:].partition(",")
        if not _BACKEND_RE.match(backend):
            raise LocatorError(f"invalid backend name in locator: {locator!r}")
        return ParsedLocator(
            name=name,
            path=locator[end + 1 :],
            options=_parse_options(raw_options, locator),
        )

    if sys.platform == "win32" and _DRIVE_RE.match(locator):
        return ParsedLocator(name="", path=locator)

    match = _REMOTE_RE.match(locator)
    if match:
        return ParsedLocator(name=match.group(1), path=match.group(2))

    return ParsedLocator(name="", path=locator)


def _parse_options(raw: str, locator: str) -> dict[str, str]:
    options: dict[str, str] = {}
    if not raw:
        return options
    for item in raw.split(","):
        key, sep, value = item.partition("=")
        if not key:
            raise LocatorError(f"empty option name in locator: {locator!r}")
        # A bare option name is a boolean flag.
        options[key] = value if sep else "true"
    return options

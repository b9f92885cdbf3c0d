"""Unit tests for layout modes and locator building."""

import pytest

from annex_remote_runtime.errors import LocatorError, ProtocolError
from annex_remote_runtime.protocol.responses import Response
from annex_remote_runtime.storage.layout import (
    LayoutMode,
    all_layout_modes,
    build_locator,
    describe_layout_modes,
    parse_layout_mode,
)

KEY = "SHA256E-s1048576--abc.bin"

# =============================================================================
# Helpers
# =============================================================================


class StubQuery:
    """Answers DIRHASH queries like git-annex would, recording each one."""

    def __init__(self, mixed: str = "Xk/2Q/", lower: str = "f87/4d5/"):
        self.mixed = mixed
        self.lower = lower
        self.queries: list[str] = []

    async def __call__(self, query: Response) -> str:
        line = query.to_line()
        self.queries.append(line)
        keyword, _, _key = line.partition(" ")
        if keyword == "DIRHASH":
            return self.mixed
        if keyword == "DIRHASH-LOWER":
            return self.lower
        raise AssertionError(f"unexpected query: {line}")


async def failing_query(query: Response) -> str:
    raise ProtocolError("expected VALUE keyword, but got 'ERROR'")


# =============================================================================
# Tests
# =============================================================================


class TestParseLayoutMode:
    """Test parsing layout mode strings."""

    @pytest.mark.parametrize("mode", ["lower", "directory", "nodir", "mixed", "frankencase"])
    def test_valid_modes(self, mode):
        assert parse_layout_mode(mode).value == mode

    @pytest.mark.parametrize("value", ["", "Lower", "flat", "nodir "])
    def test_invalid_modes(self, value):
        assert parse_layout_mode(value) is LayoutMode.UNKNOWN

    def test_all_layout_modes_excludes_unknown(self):
        assert LayoutMode.UNKNOWN not in all_layout_modes()
        assert len(all_layout_modes()) == 5

    def test_describe_layout_modes(self):
        assert describe_layout_modes() == "[lower directory nodir mixed frankencase]"


class TestBuildLocator:
    """Test where each layout puts a key."""

    @pytest.mark.anyio
    async def test_nodir_sends_no_query(self):
        query = StubQuery()

        locator = await build_locator(query, LayoutMode.NODIR, KEY, "mydrive", "annex")

        assert locator == "mydrive:annex"
        assert query.queries == []

    @pytest.mark.anyio
    async def test_lower(self):
        query = StubQuery()

        locator = await build_locator(query, LayoutMode.LOWER, KEY, "mydrive", "annex")

        assert locator == "mydrive:annex/f87/4d5/"
        assert query.queries == [f"DIRHASH-LOWER {KEY}"]

    @pytest.mark.anyio
    async def test_directory_nests_key(self):
        query = StubQuery()

        locator = await build_locator(query, LayoutMode.DIRECTORY, KEY, "mydrive", "annex")

        assert locator == f"mydrive:annex/f87/4d5/{KEY}"
        assert query.queries == [f"DIRHASH-LOWER {KEY}"]

    @pytest.mark.anyio
    async def test_mixed(self):
        query = StubQuery()

        locator = await build_locator(query, LayoutMode.MIXED, KEY, "mydrive", "annex")

        assert locator == "mydrive:annex/Xk/2Q/"
        assert query.queries == [f"DIRHASH {KEY}"]

    @pytest.mark.anyio
    async def test_frankencase_lowercases_mixed_hash(self):
        query = StubQuery()

        locator = await build_locator(query, LayoutMode.FRANKENCASE, KEY, "mydrive", "annex")

        assert locator == "mydrive:annex/xk/2q/"
        assert query.queries == [f"DIRHASH {KEY}"]

    @pytest.mark.anyio
    async def test_trailing_colon_on_remote_name_is_ignored(self):
        locator = await build_locator(StubQuery(), LayoutMode.NODIR, KEY, "mydrive:", "annex")

        assert locator == "mydrive:annex"

    @pytest.mark.anyio
    async def test_backend_remote_name(self):
        locator = await build_locator(
            StubQuery(), LayoutMode.LOWER, KEY, ":local,root=/srv/annex:", "p"
        )

        assert locator == ":local,root=/srv/annex:p/f87/4d5/"

    @pytest.mark.anyio
    async def test_query_failure_becomes_locator_error(self):
        with pytest.raises(LocatorError, match="failed to query dirhash"):
            await build_locator(failing_query, LayoutMode.MIXED, KEY, "mydrive", "annex")

    @pytest.mark.anyio
    async def test_unknown_layout_is_rejected(self):
        with pytest.raises(ValueError):
            await build_locator(StubQuery(), LayoutMode.UNKNOWN, KEY, "mydrive", "annex")

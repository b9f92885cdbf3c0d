"""Pytest configuration and shared fixtures."""

import pytest

from annex_remote_runtime.storage import MemoryStorage


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_memory_storage():
    """In-memory directories are process-wide; start every test empty."""
    MemoryStorage.reset()
    yield
    MemoryStorage.reset()

"""Shared fixtures."""

import io
from collections.abc import Generator

import pytest
from loguru import logger
from rich.console import Console


@pytest.fixture
def log_capture() -> Generator[io.StringIO, None, None]:
    """Capture loguru output to a string buffer."""
    string_io = io.StringIO()
    handler_id = logger.add(string_io, format="{message}", level="DEBUG")
    yield string_io
    logger.remove(handler_id)


@pytest.fixture
def console() -> Console:
    """Plain-text console recording everything printed."""
    return Console(file=io.StringIO(), width=200, color_system=None, record=True)

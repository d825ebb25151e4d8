"""Pytest fixtures for delimtrace tests."""

from __future__ import annotations

import io
import sys
from datetime import UTC, datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import pytest

from delimtrace.events import TraceEventCache
from delimtrace.listener import DelimitedListTraceListener
from delimtrace.sinks import StreamSink


@pytest.fixture
def buffer() -> io.StringIO:
    """In-memory text destination."""
    return io.StringIO()


@pytest.fixture
def sink(buffer: io.StringIO) -> StreamSink:
    """Sink writing to the in-memory buffer."""
    return StreamSink(buffer)


@pytest.fixture
def listener(sink: StreamSink) -> DelimitedListTraceListener:
    """Listener with default settings writing to the buffer."""
    return DelimitedListTraceListener(sink, "test")


@pytest.fixture
def sample_cache() -> TraceEventCache:
    """Context snapshot with fixed values."""
    return TraceEventCache(
        process_id=4242,
        logical_operation_stack=("Op1", 'Op2"x"'),
        thread_id="17",
        date_time=datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=UTC),
        timestamp=123456789,
        callstack='at main()\nat "run"',
    )

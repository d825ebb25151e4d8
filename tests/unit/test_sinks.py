"""Unit tests for text sinks."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from delimtrace.events import TraceEventType
from delimtrace.listener import DelimitedListTraceListener
from delimtrace.sinks import FileSink, StreamSink, TextSink


class TestStreamSink:
    """Tests for StreamSink."""

    def test_is_text_sink(self) -> None:
        assert isinstance(StreamSink(io.StringIO()), TextSink)

    def test_write_line_uses_newline(self) -> None:
        buffer = io.StringIO()
        sink = StreamSink(buffer, newline="\r\n")

        sink.write("a")
        sink.write_line("b")

        assert buffer.getvalue() == "ab\r\n"

    def test_close_keeps_borrowed_stream_open(self) -> None:
        buffer = io.StringIO()
        sink = StreamSink(buffer)

        sink.close()

        assert not buffer.closed
        assert sink.stream is None

    def test_write_after_close_fails(self) -> None:
        sink = StreamSink(io.StringIO())
        sink.close()

        with pytest.raises(ValueError, match="closed"):
            sink.write("x")

    def test_close_is_idempotent(self) -> None:
        sink = StreamSink(io.StringIO(), owns_stream=True)
        sink.close()
        sink.close()
        sink.flush()


class TestFileSink:
    """Tests for FileSink."""

    def test_file_created_lazily(self, tmp_path: Path) -> None:
        path = tmp_path / "logs" / "trace.csv"
        sink = FileSink(path)

        assert not path.exists()

        sink.write_line("first")
        sink.close()

        assert path.read_text(encoding="utf-8") == "first\n"

    def test_appends_to_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.csv"
        path.write_text("existing\n", encoding="utf-8")

        sink = FileSink(path)
        sink.write_line("new")
        sink.close()

        assert path.read_text(encoding="utf-8") == "existing\nnew\n"

    def test_write_after_close_fails(self, tmp_path: Path) -> None:
        sink = FileSink(tmp_path / "trace.csv")
        sink.write("x")
        sink.close()

        with pytest.raises(ValueError, match="closed"):
            sink.write("y")

    def test_listener_writes_records_to_file(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.csv"

        with DelimitedListTraceListener(FileSink(path)) as listener:
            listener.trace_event(None, "App", TraceEventType.ERROR, 7, "first")
            listener.trace_data_many(None, "App", TraceEventType.INFORMATION, 8, ["a", "b"])

        assert path.read_text(encoding="utf-8").splitlines() == [
            '"App";Error;7;"first";;;;;;;',
            '"App";Information;8;;"a","b";;;;;;',
        ]

    def test_embedded_newlines_are_kept(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.csv"

        with DelimitedListTraceListener(FileSink(path)) as listener:
            listener.trace_event(None, "App", TraceEventType.ERROR, 1, "two\r\nlines")

        assert path.read_bytes() == b'"App";Error;1;"two\r\nlines";;;;;;;\n'

    def test_close_before_first_write_blocks_reopen(self, tmp_path: Path) -> None:
        """A sink closed before any write does not reopen its file."""
        path = tmp_path / "trace.csv"
        sink = FileSink(path)
        sink.close()

        with pytest.raises(ValueError, match="closed"):
            sink.write("y")

        assert not path.exists()

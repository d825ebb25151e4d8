"""Text destinations for trace records."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import IO, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()


@runtime_checkable
class TextSink(Protocol):
    """Destination that receives raw text in call order."""

    def write(self, text: str) -> None: ...

    def write_line(self, text: str) -> None: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class StreamSink:
    """Writes to an already open text stream.

    Individual writes are serialized; a record made of several writes is
    not atomic with respect to other threads.

    Example:
        >>> import io
        >>> buf = io.StringIO()
        >>> sink = StreamSink(buf)
        >>> sink.write("a;b")
        >>> sink.write_line("")
        >>> buf.getvalue()
        'a;b\\n'
    """

    def __init__(
        self,
        stream: IO[str],
        *,
        newline: str = "\n",
        owns_stream: bool = False,
    ) -> None:
        """Initialize the sink.

        Args:
            stream: Text stream to write to.
            newline: Line terminator appended by write_line.
            owns_stream: Whether close() should close the stream.
        """
        self._stream: IO[str] | None = stream
        self.newline = newline
        self.owns_stream = owns_stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> IO[str] | None:
        """The underlying stream, or None once closed."""
        return self._stream

    def _ensure_stream(self) -> IO[str]:
        if self._stream is None:
            msg = "Sink is closed"
            raise ValueError(msg)
        return self._stream

    def write(self, text: str) -> None:
        """Append text without a terminator."""
        with self._lock:
            self._ensure_stream().write(text)

    def write_line(self, text: str) -> None:
        """Append text followed by the line terminator."""
        with self._lock:
            self._ensure_stream().write(text + self.newline)

    def flush(self) -> None:
        with self._lock:
            if self._stream is not None:
                self._stream.flush()

    def close(self) -> None:
        """Flush, and close the stream if this sink owns it."""
        with self._lock:
            if self._stream is None:
                return
            self._stream.flush()
            if self.owns_stream:
                self._stream.close()
            self._stream = None


class FileSink(StreamSink):
    """Appends to a file that is opened on first write.

    Parent directories are created as needed.
    """

    def __init__(
        self,
        path: Path,
        *,
        newline: str = "\n",
        encoding: str = "utf-8",
    ) -> None:
        # Stream is attached lazily by _ensure_stream
        super().__init__(None, newline=newline, owns_stream=True)  # type: ignore[arg-type]
        self.path = Path(path)
        self.encoding = encoding
        self._opened = False
        self._log = logger.bind(path=str(self.path))

    def _ensure_stream(self) -> IO[str]:
        if self._stream is None:
            if self._opened:
                msg = f"Sink is closed: {self.path}"
                raise ValueError(msg)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._stream = self.path.open("a", encoding=self.encoding, newline="")
            self._opened = True
            self._log.debug("Opened trace file")
        return self._stream

    def close(self) -> None:
        """Flush and close the file; later writes raise."""
        self._opened = True
        super().close()

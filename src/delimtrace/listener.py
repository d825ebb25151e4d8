"""Delimited trace listener: one escaped, delimiter-separated line per event."""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from types import TracebackType
from typing import TYPE_CHECKING

import structlog

from delimtrace.escaping import escape_field, escape_stack
from delimtrace.events import TraceOptions
from delimtrace.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from delimtrace.events import TraceEventCache, TraceEventType
    from delimtrace.filters import TraceFilter
    from delimtrace.sinks import TextSink

logger = structlog.get_logger()

DELIMITER_KEY = "delimiter"
DEFAULT_DELIMITER = ";"

# Number of delimiters in a footer written without a context snapshot
_EMPTY_FOOTER_FIELDS = 5


def secondary_for(delimiter: str) -> str:
    """Return the delimiter used between items of a data array."""
    return ";" if delimiter == "," else ","


class DelimitedListTraceListener:
    """Writes trace events as delimited text records.

    Each record is one line with the fields::

        source;severity;id;message;data;processId;stack;threadId;dateTime;timestamp;callstack

    Text fields are quoted with embedded quotes doubled. The message-only
    call shapes leave the data field empty and the data call shapes leave
    the message field empty.

    The primary delimiter defaults to ``;``. Unless set explicitly, it is
    looked up once in ``attributes["delimiter"]`` on first use. Items of a
    data array are separated by the secondary delimiter, which is ``,``
    unless the primary delimiter is ``,`` (then ``;``).

    Example:
        >>> import io
        >>> from delimtrace.events import TraceEventType
        >>> from delimtrace.sinks import StreamSink
        >>> buf = io.StringIO()
        >>> listener = DelimitedListTraceListener(StreamSink(buf))
        >>> listener.trace_event(None, "App", TraceEventType.ERROR, 7, "boom")
        >>> buf.getvalue()
        '"App";Error;7;"boom";;;;;;;\\n'
    """

    def __init__(
        self,
        sink: TextSink,
        name: str = "",
        *,
        filter: TraceFilter | None = None,
        trace_output_options: TraceOptions = TraceOptions.NONE,
        attributes: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the listener.

        Args:
            sink: Destination for the encoded records.
            name: Listener name, used in log output.
            filter: Optional gate consulted before each event.
            trace_output_options: Context fields to include.
            attributes: Source for the lazily resolved delimiter.
        """
        self.sink = sink
        self.name = name
        self.filter = filter
        self.trace_output_options = trace_output_options
        self.attributes: Mapping[str, str] = attributes if attributes is not None else {}
        self._lock = threading.Lock()
        self._delimiter = DEFAULT_DELIMITER
        self._secondary_delimiter = secondary_for(DEFAULT_DELIMITER)
        self._initialized_delimiter = False
        self._log = logger.bind(listener=name or type(self).__name__)

    # Configuration

    @property
    def supported_attributes(self) -> tuple[str, ...]:
        """Attribute keys this listener reads."""
        return (DELIMITER_KEY,)

    def _resolve_delimiter(self) -> None:
        # Caller must hold self._lock
        if self._initialized_delimiter:
            return
        configured = self.attributes.get(DELIMITER_KEY)
        if configured:
            self._delimiter = configured
            self._secondary_delimiter = secondary_for(configured)
            self._log.debug("Delimiter resolved from attributes", delimiter=configured)
        self._initialized_delimiter = True

    def _delimiters(self) -> tuple[str, str]:
        with self._lock:
            self._resolve_delimiter()
            return self._delimiter, self._secondary_delimiter

    @property
    def delimiter(self) -> str:
        """Separator written between fields."""
        return self._delimiters()[0]

    @delimiter.setter
    def delimiter(self, value: str) -> None:
        if not value:
            msg = "Delimiter must be a non-empty string"
            raise InvalidArgumentError(msg, param_name="delimiter")

        with self._lock:
            self._delimiter = value
            self._secondary_delimiter = secondary_for(value)
            self._initialized_delimiter = True

        self._log.debug("Delimiter changed", delimiter=value)

    @property
    def secondary_delimiter(self) -> str:
        """Separator written between items of a data array."""
        return self._delimiters()[1]

    def is_enabled(self, option: TraceOptions) -> bool:
        """Check whether a context field is included in the footer."""
        return bool(self.trace_output_options & option)

    # Tracing

    def _should_trace(
        self,
        cache: TraceEventCache | None,
        source: str,
        event_type: TraceEventType,
        id: int,
        message: str | None = None,
        args: Sequence[object] | None = None,
        data: object | None = None,
        data_array: Sequence[object] | None = None,
    ) -> bool:
        if self.filter is None:
            return True
        if self.filter.should_trace(
            cache, source, event_type, id, message, args, data, data_array
        ):
            return True
        self._log.debug(
            "Event rejected by filter",
            source=source,
            event_type=event_type.value,
            id=id,
        )
        return False

    def trace_event(
        self,
        cache: TraceEventCache | None,
        source: str,
        event_type: TraceEventType,
        id: int,
        message: str | None = None,
    ) -> None:
        """Write a plain message event.

        Args:
            cache: Context snapshot, or None.
            source: Name of the emitting component.
            event_type: Severity of the event.
            id: Numeric event identifier.
            message: Message text; None writes an empty field.
        """
        if not self._should_trace(cache, source, event_type, id, message=message):
            return

        delimiter, _ = self._delimiters()
        self._write_header(source, event_type, id, delimiter)
        self.sink.write(escape_field(message))
        self.sink.write(delimiter)
        # Empty data field
        self.sink.write(delimiter)
        self._write_footer(cache, delimiter)

    def trace_event_format(
        self,
        cache: TraceEventCache | None,
        source: str,
        event_type: TraceEventType,
        id: int,
        format: str | None,
        args: Sequence[object] | None = None,
    ) -> None:
        """Write a message built from a ``str.format`` template.

        The template is only formatted when ``args`` is not None.
        Formatting errors propagate to the caller, and a None template
        with args raises InvalidArgumentError. Nothing is written then.

        Example:
            >>> import io
            >>> from delimtrace.events import TraceEventType
            >>> from delimtrace.sinks import StreamSink
            >>> buf = io.StringIO()
            >>> listener = DelimitedListTraceListener(StreamSink(buf))
            >>> listener.trace_event_format(
            ...     None, "App", TraceEventType.WARNING, 3, "{0} of {1}", [1, 2]
            ... )
            >>> buf.getvalue()
            '"App";Warning;3;"1 of 2";;;;;;;\\n'
        """
        if not self._should_trace(
            cache, source, event_type, id, message=format, args=args
        ):
            return

        if args is not None:
            if format is None:
                msg = "A format template is required when args are given"
                raise InvalidArgumentError(msg, param_name="format")
            message = format.format(*args)
        else:
            message = format

        delimiter, _ = self._delimiters()
        self._write_header(source, event_type, id, delimiter)
        self.sink.write(escape_field(message))
        self.sink.write(delimiter)
        # Empty data field
        self.sink.write(delimiter)
        self._write_footer(cache, delimiter)

    def trace_data(
        self,
        cache: TraceEventCache | None,
        source: str,
        event_type: TraceEventType,
        id: int,
        data: object | None = None,
    ) -> None:
        """Write a single data object, rendered with ``str()``."""
        if not self._should_trace(cache, source, event_type, id, data=data):
            return

        delimiter, _ = self._delimiters()
        self._write_header(source, event_type, id, delimiter)
        # Empty message field
        self.sink.write(delimiter)
        self.sink.write(escape_field(None if data is None else str(data)))
        self.sink.write(delimiter)
        self._write_footer(cache, delimiter)

    def trace_data_many(
        self,
        cache: TraceEventCache | None,
        source: str,
        event_type: TraceEventType,
        id: int,
        data: Sequence[object] | None = None,
    ) -> None:
        """Write several data objects as one field.

        Items are escaped individually and joined with the secondary
        delimiter, so ``["a", "b,c"]`` becomes ``"a","b,c"`` when the
        primary delimiter is ``;``.
        """
        if not self._should_trace(cache, source, event_type, id, data_array=data):
            return

        delimiter, secondary = self._delimiters()
        self._write_header(source, event_type, id, delimiter)
        # Empty message field
        self.sink.write(delimiter)
        if data is not None:
            for i, item in enumerate(data):
                if i:
                    self.sink.write(secondary)
                self.sink.write(escape_field(None if item is None else str(item)))
        self.sink.write(delimiter)
        self._write_footer(cache, delimiter)

    def _write_header(
        self, source: str, event_type: TraceEventType, id: int, delimiter: str
    ) -> None:
        self.sink.write(escape_field(source))
        self.sink.write(delimiter)
        self.sink.write(event_type.value)
        self.sink.write(delimiter)
        self.sink.write(str(int(id)))
        self.sink.write(delimiter)

    def _write_footer(self, cache: TraceEventCache | None, delimiter: str) -> None:
        write = self.sink.write

        if cache is not None:
            if self.is_enabled(TraceOptions.PROCESS_ID) and cache.process_id is not None:
                write(str(cache.process_id))
            write(delimiter)

            if self.is_enabled(TraceOptions.LOGICAL_OPERATION_STACK):
                write(escape_stack(cache.logical_operation_stack))
            write(delimiter)

            if self.is_enabled(TraceOptions.THREAD_ID):
                write(escape_field(cache.thread_id))
            write(delimiter)

            if self.is_enabled(TraceOptions.DATE_TIME):
                write(escape_field(cache.date_time.isoformat()))
            write(delimiter)

            if self.is_enabled(TraceOptions.TIMESTAMP):
                write(str(cache.timestamp))
            write(delimiter)

            # Last field, no trailing delimiter
            if self.is_enabled(TraceOptions.CALLSTACK):
                write(escape_field(cache.callstack))
        else:
            for _ in range(_EMPTY_FOOTER_FIELDS):
                write(delimiter)

        self.sink.write_line("")

    # Passthrough to the sink

    def write(self, text: str) -> None:
        """Write raw text to the sink, bypassing encoding and filters."""
        self.sink.write(text)

    def write_line(self, text: str) -> None:
        """Write raw text and a line terminator to the sink."""
        self.sink.write_line(text)

    def flush(self) -> None:
        self.sink.flush()

    def close(self) -> None:
        """Flush and close the sink."""
        self.sink.close()

    def __enter__(self) -> DelimitedListTraceListener:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

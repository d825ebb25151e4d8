"""delimtrace - delimited text records for trace events."""

from delimtrace.escaping import escape_field, escape_stack
from delimtrace.events import TraceEventCache, TraceEventType, TraceOptions
from delimtrace.exceptions import ConfigError, DelimTraceError, InvalidArgumentError
from delimtrace.filters import TraceFilter
from delimtrace.listener import DelimitedListTraceListener
from delimtrace.sinks import FileSink, StreamSink, TextSink

__version__ = "0.1.0"

__all__ = [
    # Escaping
    "escape_field",
    "escape_stack",
    # Events
    "TraceEventCache",
    "TraceEventType",
    "TraceOptions",
    # Errors
    "ConfigError",
    "DelimTraceError",
    "InvalidArgumentError",
    # Listener
    "DelimitedListTraceListener",
    "TraceFilter",
    # Sinks
    "FileSink",
    "StreamSink",
    "TextSink",
    "__version__",
]

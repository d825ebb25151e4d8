"""Trace event types, output options and context snapshots."""

from __future__ import annotations

import os
import threading
import time
import traceback
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, Flag


class TraceEventType(str, Enum):
    """Severity or activity kind of a trace event.

    The value is written verbatim into the severity field of a record.
    """

    CRITICAL = "Critical"
    ERROR = "Error"
    WARNING = "Warning"
    INFORMATION = "Information"
    VERBOSE = "Verbose"
    START = "Start"
    STOP = "Stop"
    SUSPEND = "Suspend"
    RESUME = "Resume"
    TRANSFER = "Transfer"

    @classmethod
    def parse(cls, name: str) -> TraceEventType:
        """Look up an event type by value or member name, ignoring case.

        Args:
            name: e.g. "Error", "error" or "ERROR".

        Returns:
            The matching TraceEventType.

        Raises:
            ValueError: If no event type matches.
        """
        wanted = name.strip().lower()
        for member in cls:
            if wanted in (member.value.lower(), member.name.lower()):
                return member
        msg = f"Unknown trace event type: {name!r}"
        raise ValueError(msg)


class TraceOptions(Flag):
    """Optional context fields written at the end of each record."""

    NONE = 0
    LOGICAL_OPERATION_STACK = 1
    DATE_TIME = 2
    TIMESTAMP = 4
    PROCESS_ID = 8
    THREAD_ID = 16
    CALLSTACK = 32

    @classmethod
    def from_names(cls, names: Iterable[str]) -> TraceOptions:
        """Combine options given by name.

        Names are matched case-insensitively and may use dashes, e.g.
        ``["process-id", "THREAD_ID"]``.

        Raises:
            ValueError: If a name does not match any option.
        """
        result = cls.NONE
        for name in names:
            key = name.strip().upper().replace("-", "_")
            try:
                result |= cls[key]
            except KeyError:
                msg = f"Unknown trace option: {name!r}"
                raise ValueError(msg) from None
        return result


@dataclass(frozen=True)
class TraceEventCache:
    """Context snapshot attached to a trace event.

    Attributes:
        process_id: Id of the emitting process.
        logical_operation_stack: Active logical operations, most recent first.
        thread_id: Identifier of the emitting thread.
        date_time: Wall-clock time of the event.
        timestamp: High-resolution counter value at the event.
        callstack: Formatted call stack of the emitting code.
    """

    process_id: int | None = None
    logical_operation_stack: tuple[object, ...] = ()
    thread_id: str = ""
    date_time: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    timestamp: int = 0
    callstack: str = ""

    @classmethod
    def capture(
        cls, logical_operation_stack: Iterable[object] = ()
    ) -> TraceEventCache:
        """Snapshot the calling thread's context.

        Args:
            logical_operation_stack: Active operations, most recent first.

        Returns:
            A TraceEventCache for the current process and thread.
        """
        # Drop this frame so the stack ends at the caller
        stack = traceback.format_stack()[:-1]
        return cls(
            process_id=os.getpid(),
            logical_operation_stack=tuple(logical_operation_stack),
            thread_id=str(threading.get_ident()),
            date_time=datetime.now(tz=UTC),
            timestamp=time.perf_counter_ns(),
            callstack="".join(stack).rstrip("\n"),
        )

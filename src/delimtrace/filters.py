"""Filter protocol consulted before a record is written."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from delimtrace.events import TraceEventCache, TraceEventType


@runtime_checkable
class TraceFilter(Protocol):
    """Decides whether an event reaches the listener's output.

    Exactly one of ``message``/``data``/``data_array`` is relevant for a
    given call shape; the others are None. ``args`` is only set for
    formatted messages.
    """

    def should_trace(
        self,
        cache: TraceEventCache | None,
        source: str,
        event_type: TraceEventType,
        id: int,
        message: str | None,
        args: Sequence[object] | None,
        data: object | None,
        data_array: Sequence[object] | None,
    ) -> bool: ...

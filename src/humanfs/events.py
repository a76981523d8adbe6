"""LogSink and LogEntry — the structured per-call log of an Hfs instance."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LogEntry:
    """Immutable record of one settled façade call.

    Attributes:
        method_name: Public method that was called, e.g. ``"copy_all"``.
        args: Arguments exactly as the caller passed them.
        duration: Wall time in seconds from validation to settlement.
        success: False when the call raised.
        error: The raised exception, None on success.
        type: Entry kind; always ``"call"`` for façade calls.
    """

    method_name: str
    args: tuple[Any, ...] = ()
    duration: float = 0.0
    success: bool = True
    error: BaseException | None = None
    type: str = "call"
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class LogSink:
    """Dispatches log entries to subscribed handlers.

    Handlers are plain callables invoked synchronously in subscription order.
    Exceptions are logged but never propagated; a failing handler loses
    observability, it does not change the outcome of the call it observed.
    """

    def __init__(self) -> None:
        self._handlers: list[Callable[[LogEntry], Any]] = []

    def subscribe(self, handler: Callable[[LogEntry], Any]) -> None:
        """Append *handler* to the subscriber list."""
        self._handlers.append(handler)

    def unsubscribe(self, handler: Callable[[LogEntry], Any]) -> bool:
        """Remove first occurrence of *handler*. Return True if found."""
        try:
            self._handlers.remove(handler)
            return True
        except ValueError:
            return False

    def emit(self, entry: LogEntry) -> None:
        """Dispatch *entry* to every subscribed handler."""
        for handler in list(self._handlers):
            try:
                handler(entry)
            except Exception:
                logger.warning(
                    "Log handler %r failed for %s",
                    handler,
                    entry.method_name,
                    exc_info=True,
                )

    @property
    def handler_count(self) -> int:
        """Number of subscribed handlers."""
        return len(self._handlers)

    def clear(self) -> None:
        """Remove all subscribed handlers."""
        self._handlers.clear()

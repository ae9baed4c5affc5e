from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Self

from apmtrace.exceptions import ForeignSpanError, InvalidStateError

from .events import EventBean, SpanRecord, now_micros
from .stacktrace import capture_backtrace
from .timer import Timer

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .context import ContextValue
    from .transaction import Transaction

logger = logging.getLogger(__name__)


class Span(EventBean):
    """A timed operation nested inside exactly one transaction.

    The parent is held as a span id and resolved through the owning
    transaction. A span without a parent is a direct child of the
    transaction root.
    """

    def __init__(
        self,
        name: str,
        context: Mapping[str, ContextValue] | None,
        transaction: Transaction,
        parent_span: Span | None = None,
    ) -> None:
        super().__init__(context, transaction)
        self._owner: Transaction = transaction
        self.name = name
        self._parent_id: str | None = None
        self._timer = Timer()
        self._summary: dict[str, Any] = {
            "start": 0.0,
            "duration": 0.0,
            "backtrace": None,
        }
        self._drop = False

        if parent_span is not None:
            self.parent_span = parent_span

        transaction.add_span(self)

    @property
    def transaction(self) -> Transaction:
        return self._owner

    @property
    def parent_id(self) -> str | None:
        return self._parent_id

    @property
    def parent_span(self) -> Span | None:
        if self._parent_id is None:
            return None
        return self._owner.get_span(self._parent_id)

    @parent_span.setter
    def parent_span(self, span: Span | None) -> None:
        if span is None:
            self._parent_id = None
            return
        if span.transaction is not self._owner:
            msg = f"Span '{span.name}' belongs to another transaction than span '{self.name}'"
            raise ForeignSpanError(msg)
        self._parent_id = span.id

    @property
    def summary(self) -> dict[str, Any]:
        return dict(self._summary)

    @property
    def is_running(self) -> bool:
        return self._timer.is_started and not self._timer.is_stopped

    def is_drop_span(self) -> bool:
        return self._drop

    def mark_dropped(self, drop: bool = True) -> None:
        """Keep the span in memory but leave it out of the emitted record."""
        self._drop = drop

    def start(self) -> None:
        if self._timer.is_started:
            msg = f"Span '{self.name}' has already been started"
            raise InvalidStateError(msg)
        self._owner.push_active_span(self)
        self._summary["start"] = float(now_micros() - self._owner.timestamp)
        self._timer.start()
        logger.debug("span %s (%s) started in transaction %s", self.name, self.id, self._owner.id)

    def stop(self, duration: float | None = None) -> None:
        self._timer.stop()
        if self._owner.is_active_span(self):
            self._owner.pop_active_span(self)
        else:
            logger.debug("span %s (%s) stopped while not on the active stack", self.name, self.id)
        self._record(duration)

    def _close(self) -> None:
        """Finish a span that an enclosing span's stop already popped."""
        if not self._timer.is_started:
            return
        self._timer.stop()
        self._record(None)

    def _record(self, duration: float | None) -> None:
        if duration is not None:
            self._summary["duration"] = float(duration)
        else:
            self._summary["duration"] = round(self._timer.get_duration_in_milliseconds(), 3)
        self._summary["backtrace"] = capture_backtrace(self._owner.backtrace_limit)
        logger.debug("span %s (%s) stopped after %.3f ms", self.name, self.id, self._summary["duration"])

    def json_serialize(self) -> dict[str, Any]:
        meta = self.meta.model_dump()
        meta.pop("result", None)
        data: dict[str, Any] = {
            "id": self.id,
            "transaction_id": self._owner.id,
            "parent_id": self._parent_id or self._owner.id,
            "trace_id": self._owner.id,
            "name": self.name,
            "duration": self._summary["duration"],
            "context": self.get_context(),
            "stacktrace": self._summary["backtrace"] or [],
        }
        record = SpanRecord(**{**data, **meta})
        return record.model_dump()

    def __enter__(self) -> Self:
        if not self._timer.is_started:
            self.start()
        return self

    def __exit__(self, *args: object) -> bool:
        if self.is_running:
            self.stop()
        return False

from __future__ import annotations

import logging
import warnings
from typing import TYPE_CHECKING, Any

from .events import EventBean, SpanCount, TransactionRecord
from .stacktrace import capture_backtrace
from .timer import Timer

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .context import ContextValue
    from .error import Error
    from .span import Span

logger = logging.getLogger(__name__)


class Transaction(EventBean):
    """Root unit of work owning its spans, errors and active span stack.

    The active span stack holds span ids; the innermost open span is last.
    """

    def __init__(
        self,
        name: str,
        context: Mapping[str, ContextValue] | None = None,
        start: float | None = None,
    ) -> None:
        super().__init__(context)
        self.name = name
        self._timer = Timer(start)
        self._summary: dict[str, Any] = {
            "duration": 0.0,
            "backtrace": None,
            "headers": [],
        }
        self._spans: list[Span] = []
        self._span_index: dict[str, Span] = {}
        self._errors: list[Error] = []
        self._backtrace_limit = 0
        self._span_stack: list[str] = []

    def start(self) -> None:
        self._timer.start()
        logger.debug("transaction %s (%s) started", self.name, self.id)

    def stop(self, duration: float | None = None) -> None:
        while self._span_stack:
            span = self._span_index.get(self._span_stack[-1])
            if span is None:
                self._span_stack.pop()
                continue
            warnings.warn(
                f"Span '{span.name}' is still running when transaction '{self.name}' stopped",
                RuntimeWarning,
                stacklevel=2,
            )
            span.stop()

        self._timer.stop()

        if duration is not None:
            self._summary["duration"] = float(duration)
        else:
            self._summary["duration"] = round(self._timer.get_duration_in_milliseconds(), 3)
        self._summary["headers"] = []
        self._summary["backtrace"] = capture_backtrace(self._backtrace_limit)
        logger.debug(
            "transaction %s (%s) stopped after %.3f ms with %d spans",
            self.name,
            self.id,
            self._summary["duration"],
            len(self._spans),
        )

    def set_transaction_name(self, name: str) -> None:
        self.name = name

    def get_transaction_name(self) -> str:
        return self.name

    @property
    def summary(self) -> dict[str, Any]:
        return dict(self._summary)

    @property
    def backtrace_limit(self) -> int:
        return self._backtrace_limit

    def set_backtrace_limit(self, limit: int) -> None:
        """Bound the frames captured on stop; 0 captures the full stack."""
        self._backtrace_limit = limit

    @property
    def spans(self) -> list[Span]:
        return list(self._spans)

    def add_span(self, span: Span) -> None:
        self._spans.append(span)
        self._span_index[span.id] = span

    def set_spans(self, spans: Iterable[Span]) -> None:
        self._spans = list(spans)
        self._span_index = {span.id: span for span in self._spans}

    def get_span(self, span_id: str) -> Span | None:
        return self._span_index.get(span_id)

    @property
    def errors(self) -> list[Error]:
        return list(self._errors)

    def add_error(self, error: Error) -> None:
        self._errors.append(error)

    def set_errors(self, errors: Iterable[Error]) -> None:
        self._errors = list(errors)

    @property
    def active_spans(self) -> list[Span]:
        return [self._span_index[span_id] for span_id in self._span_stack if span_id in self._span_index]

    def is_active_span(self, span: Span) -> bool:
        return span.id in self._span_stack

    def push_active_span(self, span: Span) -> None:
        if self._span_stack:
            span.parent_span = self._span_index.get(self._span_stack[-1])
        self._span_stack.append(span.id)

    def pop_active_span(self, span: Span) -> None:
        """Pop until ``span`` is removed, closing any span opened after it.

        When ``span`` is not on the stack at all, every open span is closed.
        """
        while self._span_stack:
            span_id = self._span_stack.pop()
            if span_id == span.id:
                break
            leaked = self._span_index.get(span_id)
            if leaked is None:
                continue
            warnings.warn(
                f"Span '{leaked.name}' was closed because span '{span.name}' stopped first",
                RuntimeWarning,
                stacklevel=3,
            )
            leaked._close()  # noqa: SLF001

    def json_serialize(self) -> dict[str, Any]:
        dropped = 0
        spans: list[dict[str, Any]] = []
        for span in self._spans:
            if span.is_drop_span():
                dropped += 1
                continue
            spans.append(span.json_serialize())

        record = TransactionRecord(
            id=self.id,
            trace_id=self.id,
            span_count=SpanCount(started=len(spans), dropped=dropped),
            timestamp=self.timestamp,
            name=self.name,
            duration=self._summary["duration"],
            type=self.get_meta_type(),
            result=self.get_meta_result(),
            context=self.get_context(),
            spans=spans,
            errors=[error.json_serialize() for error in self._errors],
        )
        return record.model_dump()

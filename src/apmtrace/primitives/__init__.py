"""Primitives for tracing: timer, events, spans, transactions, errors."""

from .context import Context, ContextValue, merge_context
from .error import Error
from .events import (
    ErrorRecord,
    EventBean,
    ExceptionRecord,
    Meta,
    Processor,
    SpanCount,
    SpanRecord,
    TransactionRecord,
)
from .factory import DefaultEventFactory, EventFactory
from .span import Span
from .timer import Timer
from .transaction import Transaction

__all__ = [
    "Context",
    "ContextValue",
    "DefaultEventFactory",
    "Error",
    "ErrorRecord",
    "EventBean",
    "EventFactory",
    "ExceptionRecord",
    "Meta",
    "Processor",
    "Span",
    "SpanCount",
    "SpanRecord",
    "Timer",
    "Transaction",
    "TransactionRecord",
    "merge_context",
]

"""Pluggable construction of events, so agents can hand out subclasses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .error import Error
from .span import Span
from .transaction import Transaction

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .context import ContextValue


@runtime_checkable
class EventFactory(Protocol):
    def create_transaction(
        self,
        name: str,
        context: Mapping[str, ContextValue],
        start: float | None = None,
    ) -> Transaction: ...

    def create_span(
        self,
        name: str,
        context: Mapping[str, ContextValue],
        transaction: Transaction,
        parent_span: Span | None = None,
    ) -> Span: ...

    def create_error(
        self,
        throwable: BaseException,
        context: Mapping[str, ContextValue],
        transaction: Transaction | None = None,
    ) -> Error: ...


class DefaultEventFactory:
    def create_transaction(
        self,
        name: str,
        context: Mapping[str, ContextValue],
        start: float | None = None,
    ) -> Transaction:
        return Transaction(name, context, start)

    def create_span(
        self,
        name: str,
        context: Mapping[str, ContextValue],
        transaction: Transaction,
        parent_span: Span | None = None,
    ) -> Span:
        return Span(name, context, transaction, parent_span)

    def create_error(
        self,
        throwable: BaseException,
        context: Mapping[str, ContextValue],
        transaction: Transaction | None = None,
    ) -> Error:
        return Error(throwable, context, transaction)

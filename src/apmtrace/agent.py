"""The APM agent: owns the current transaction and the event stores.

Usage:
    from apmtrace import Agent, AgentConfig

    agent = Agent(AgentConfig(app_name="shop"), connector=my_connector)

    with agent.transaction("GET /cart") as txn:
        with agent.start_span("SELECT cart"):
            ...

    agent.send()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from apmtrace.exceptions import (
    NestedTransactionError,
    NoActiveTransactionError,
    UnknownTransactionError,
)
from apmtrace.primitives.context import merge_context
from apmtrace.primitives.factory import DefaultEventFactory
from apmtrace.primitives.timer import Timer
from apmtrace.stores import ErrorStore, TransactionStore

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from apmtrace.config import AgentConfig
    from apmtrace.dispatch import Connector
    from apmtrace.primitives.context import Context, ContextValue
    from apmtrace.primitives.error import Error
    from apmtrace.primitives.events import Meta
    from apmtrace.primitives.factory import EventFactory
    from apmtrace.primitives.span import Span
    from apmtrace.primitives.transaction import Transaction

logger = logging.getLogger(__name__)


class Agent:
    """Records transactions, spans and errors for one unit of work at a time.

    At most one transaction is current. Concurrent work inside a
    transaction is modelled with spans; concurrent requests need one agent
    each (see ``apmtrace.scope.AgentScope``).
    """

    NAME = "apmtrace-python"
    VERSION = "0.1.0"

    def __init__(
        self,
        config: AgentConfig,
        shared_context: Mapping[str, ContextValue] | None = None,
        event_factory: EventFactory | None = None,
        transaction_store: TransactionStore | None = None,
        error_store: ErrorStore | None = None,
        connector: Connector | None = None,
    ) -> None:
        self._config = config
        self._event_factory: EventFactory = event_factory or DefaultEventFactory()
        self._transactions = transaction_store if transaction_store is not None else TransactionStore()
        self._errors = error_store if error_store is not None else ErrorStore()
        self._connector = connector
        self._current: Transaction | None = None

        shared = shared_context or {}
        self._shared_context: Context = {
            "user": merge_context(shared.get("user") or {}),
            "custom": merge_context(shared.get("custom") or {}),
            "tags": merge_context(shared.get("tags") or {}),
            "env": list(config.env),
            "cookies": list(config.cookies),
        }

        self._timer = Timer()
        self._timer.start()

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def shared_context(self) -> Context:
        return merge_context(self._shared_context)

    @property
    def current_transaction(self) -> Transaction | None:
        return self._current

    @property
    def uptime_ms(self) -> float:
        return self._timer.get_elapsed_in_milliseconds()

    @property
    def transaction_store(self) -> TransactionStore:
        return self._transactions

    @property
    def error_store(self) -> ErrorStore:
        return self._errors

    def start_transaction(
        self,
        name: str,
        context: Mapping[str, ContextValue] | None = None,
        start: float | None = None,
    ) -> Transaction:
        """Create, register and start a transaction and make it current.

        When ``start`` is given the transaction is taken to have begun at
        that ``time.perf_counter()`` instant and its timer is not restarted.
        """
        if self._current is not None:
            raise NestedTransactionError(name)

        transaction = self._event_factory.create_transaction(
            name, merge_context(self._shared_context, context), start
        )
        self._transactions.register(transaction)

        if start is None:
            transaction.start()

        self._current = transaction
        return transaction

    def stop_transaction(self, name: str, meta: Meta | Mapping[str, Any] | None = None) -> None:
        transaction = self.get_transaction(name)
        transaction.set_backtrace_limit(self._config.backtrace_limit)
        transaction.stop()
        transaction.set_meta(meta)

        if transaction is self._current:
            self._current = None
        else:
            logger.warning(
                "stopped transaction %r is not the current transaction; current one left open",
                name,
            )

    def get_transaction(self, name: str) -> Transaction:
        transaction = self._transactions.fetch(name)
        if transaction is None:
            raise UnknownTransactionError(name)
        return transaction

    def start_span(
        self,
        name: str,
        context: Mapping[str, ContextValue] | None = None,
        parent_span: Span | None = None,
    ) -> Span:
        if self._current is None:
            raise NoActiveTransactionError(name)

        span = self._event_factory.create_span(
            name, merge_context(self._shared_context, context), self._current, parent_span
        )
        span.start()
        return span

    def capture_throwable(
        self,
        thrown: BaseException,
        context: Mapping[str, ContextValue] | None = None,
        transaction: Transaction | None = None,
    ) -> Error:
        """Record an exception, on ``transaction`` if given, else in the error store."""
        error = self._event_factory.create_error(
            thrown, merge_context(self._shared_context, context), transaction
        )

        if transaction is not None:
            transaction.add_error(error)
        else:
            self._errors.register(error)
        return error

    @contextmanager
    def transaction(
        self,
        name: str,
        context: Mapping[str, ContextValue] | None = None,
        meta: Meta | Mapping[str, Any] | None = None,
    ) -> Iterator[Transaction]:
        """Run a block inside a transaction; an escaping exception is captured on it."""
        transaction = self.start_transaction(name, context)
        outcome = meta
        try:
            yield transaction
        except BaseException as exc:
            self.capture_throwable(exc, transaction=transaction)
            if outcome is None:
                outcome = {"result": "error"}
            raise
        finally:
            self.stop_transaction(name, outcome)

    def send(self) -> bool:
        """Hand both stores to the connector; reset each one that was delivered."""
        if not self._config.active:
            self._errors.reset()
            self._transactions.reset()
            return True

        if self._errors.is_empty() and self._transactions.is_empty():
            return True

        if self._connector is None:
            logger.warning(
                "no connector configured, keeping %d errors and %d transactions",
                len(self._errors),
                len(self._transactions),
            )
            return False

        status = True

        if not self._errors.is_empty():
            if self._connector.send_errors(self._errors):
                self._errors.reset()
            else:
                logger.warning("failed to send %d errors", len(self._errors))
                status = False

        if not self._transactions.is_empty():
            if self._connector.send_transactions(self._transactions):
                self._transactions.reset()
            else:
                logger.warning("failed to send %d transactions", len(self._transactions))
                status = False

        return status

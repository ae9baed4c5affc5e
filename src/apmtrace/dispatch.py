"""Interface of the collaborator that ships stores to a collector.

Network delivery, batching and retry policy live outside this package;
the agent only needs a boolean outcome per store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from apmtrace.stores import ErrorStore, TransactionStore


@runtime_checkable
class Connector(Protocol):
    def send_errors(self, store: ErrorStore) -> bool: ...

    def send_transactions(self, store: TransactionStore) -> bool: ...

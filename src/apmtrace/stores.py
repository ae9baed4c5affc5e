"""In-memory registries of completed events awaiting dispatch."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from apmtrace.exceptions import DuplicateTransactionNameError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from apmtrace.primitives.error import Error
    from apmtrace.primitives.transaction import Transaction


class TransactionStore:
    """Transactions keyed by name; one retrievable transaction per name."""

    def __init__(self) -> None:
        self._store: dict[str, Transaction] = {}

    def register(self, transaction: Transaction) -> None:
        name = transaction.get_transaction_name()
        if name in self._store:
            raise DuplicateTransactionNameError(name)
        self._store[name] = transaction

    def fetch(self, name: str) -> Transaction | None:
        return self._store.get(name)

    def is_empty(self) -> bool:
        return not self._store

    def reset(self) -> None:
        self._store = {}

    def fetch_all(self) -> list[Transaction]:
        return list(self._store.values())

    def json_serialize(self) -> list[dict[str, Any]]:
        return [transaction.json_serialize() for transaction in self._store.values()]

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self._store.values()))

    def __len__(self) -> int:
        return len(self._store)


class ErrorStore:
    """Append-only list of errors captured outside any transaction."""

    def __init__(self) -> None:
        self._store: list[Error] = []

    def register(self, error: Error) -> None:
        self._store.append(error)

    def is_empty(self) -> bool:
        return not self._store

    def reset(self) -> None:
        self._store = []

    def fetch_all(self) -> list[Error]:
        return list(self._store)

    def json_serialize(self) -> list[dict[str, Any]]:
        return [error.json_serialize() for error in self._store]

    def __iter__(self) -> Iterator[Error]:
        return iter(list(self._store))

    def __len__(self) -> int:
        return len(self._store)

"""Error taxonomy for misuse of the tracing API.

Every error here is a local usage-contract violation: it is raised
immediately and never recovered from inside the agent.
"""

from __future__ import annotations


class ApmError(Exception):
    """Base class for all apmtrace errors."""


class TransactionError(ApmError):
    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(message)


class NestedTransactionError(TransactionError):
    def __init__(self, name: str) -> None:
        super().__init__(name, f"The transaction '{name}' is not permitted to be nested.")


class UnknownTransactionError(TransactionError):
    def __init__(self, name: str) -> None:
        super().__init__(name, f"The transaction '{name}' is not registered.")


class DuplicateTransactionNameError(TransactionError):
    def __init__(self, name: str) -> None:
        super().__init__(name, f"A transaction named '{name}' is already registered.")


class NoActiveTransactionError(ApmError):
    def __init__(self, span_name: str) -> None:
        self.span_name = span_name
        super().__init__(f"Cannot start span '{span_name}': no transaction in progress.")


class InvalidStateError(ApmError):
    """Raised when a primitive is used out of its lifecycle order."""


class ForeignSpanError(ApmError):
    """Raised when a span is parented to a span of another transaction."""


__all__ = [
    "ApmError",
    "DuplicateTransactionNameError",
    "ForeignSpanError",
    "InvalidStateError",
    "NestedTransactionError",
    "NoActiveTransactionError",
    "TransactionError",
    "UnknownTransactionError",
]

"""apmtrace: in-process transaction and span capture for APM intake."""

import logging

from .agent import Agent
from .config import AgentConfig
from .dispatch import Connector
from .exceptions import (
    ApmError,
    DuplicateTransactionNameError,
    ForeignSpanError,
    InvalidStateError,
    NestedTransactionError,
    NoActiveTransactionError,
    TransactionError,
    UnknownTransactionError,
)
from .primitives import (
    DefaultEventFactory,
    Error,
    EventFactory,
    Meta,
    Span,
    Timer,
    Transaction,
    merge_context,
)
from .scope import AgentScope, current_agent
from .stores import ErrorStore, TransactionStore

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Agent",
    "AgentConfig",
    "AgentScope",
    "ApmError",
    "Connector",
    "DefaultEventFactory",
    "DuplicateTransactionNameError",
    "Error",
    "ErrorStore",
    "EventFactory",
    "ForeignSpanError",
    "InvalidStateError",
    "Meta",
    "NestedTransactionError",
    "NoActiveTransactionError",
    "Span",
    "Timer",
    "Transaction",
    "TransactionError",
    "TransactionStore",
    "UnknownTransactionError",
    "current_agent",
    "merge_context",
]

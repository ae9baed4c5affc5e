"""Binding of an Agent to the current execution context.

One agent supports a single open transaction, so concurrent requests
(threads or asyncio tasks) each need their own agent. ``AgentScope`` sets
it in a context variable, which asyncio copies per task.
"""

from __future__ import annotations

import warnings
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from apmtrace.agent import Agent


_current_agent: ContextVar[Agent | None] = ContextVar("_current_agent", default=None)


def current_agent() -> Agent | None:
    return _current_agent.get()


class AgentScope:
    def __init__(self, agent: Agent) -> None:
        self.agent = agent
        self._token: Token[Agent | None] | None = None

    def __enter__(self) -> Self:
        self._token = _current_agent.set(self.agent)
        return self

    def __exit__(self, *args: object) -> None:
        transaction = self.agent.current_transaction
        if transaction is not None:
            warnings.warn(
                f"Transaction '{transaction.name}' is still running",
                RuntimeWarning,
                stacklevel=2,
            )

        if self._token:
            _current_agent.reset(self._token)
            self._token = None

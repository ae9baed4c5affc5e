"""Base event bean and wire record models shared by all event kinds."""

from __future__ import annotations

import os
import time
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from ulid import ULID

from .context import ContextValue, merge_context

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .transaction import Transaction


def now_micros() -> int:
    return int(time.time() * 1_000_000)


class Meta(BaseModel):
    """Outcome classification. Extra keys (e.g. span ``subtype``) are kept."""

    model_config = ConfigDict(extra="allow")

    type: str = "generic"
    result: str = "200"

    @field_validator("type", "result", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        if value is None:
            msg = "meta values must not be None"
            raise ValueError(msg)
        return str(value)


class Processor(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: str
    name: str


class SpanCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    started: int = 0
    dropped: int = 0


class SpanRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    transaction_id: str
    parent_id: str
    trace_id: str
    name: str
    duration: float
    context: dict[str, Any]
    stacktrace: list[dict[str, Any]]
    type: str = "generic"


class ExceptionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    type: str
    code: Any = None
    stacktrace: list[dict[str, Any]] = Field(default_factory=list)


class ErrorRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int
    context: dict[str, Any]
    culprit: str
    exception: ExceptionRecord
    processor: Processor = Processor(event="error", name="error")
    transaction_id: str | None = None
    parent_id: str | None = None
    trace_id: str | None = None


class TransactionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    trace_id: str
    span_count: SpanCount
    timestamp: int
    name: str
    duration: float
    type: str
    result: str
    context: dict[str, Any]
    spans: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[dict[str, Any]] = Field(default_factory=list)
    processor: Processor = Processor(event="transaction", name="transaction")


class EventBean:
    """Identity, capture time, context and meta common to every event."""

    def __init__(
        self,
        context: Mapping[str, ContextValue] | None = None,
        transaction: Transaction | None = None,
    ) -> None:
        self._id: str = str(ULID())
        self._timestamp: int = now_micros()
        self._context = merge_context(context)
        self._meta = Meta()
        self._transaction = transaction

    @property
    def id(self) -> str:
        return self._id

    @property
    def timestamp(self) -> int:
        return self._timestamp

    @property
    def transaction(self) -> Transaction | None:
        return self._transaction

    @property
    def meta(self) -> Meta:
        return self._meta

    def set_meta(self, meta: Meta | Mapping[str, Any] | None) -> None:
        if not meta:
            return
        values = meta.model_dump() if isinstance(meta, Meta) else dict(meta)
        values = {key: value for key, value in values.items() if value is not None}
        self._meta = Meta(**{**self._meta.model_dump(), **values})

    def get_meta_type(self) -> str:
        return self._meta.type

    def get_meta_result(self) -> str:
        return self._meta.result

    def get_context(self) -> dict[str, Any]:
        """Context as emitted on the wire.

        An ``env`` list names the environment variables to report; it is
        resolved against ``os.environ`` at serialization time.
        """
        context = merge_context(self._context)
        env = context.get("env")
        if isinstance(env, list):
            context["env"] = {name: os.environ[name] for name in env if isinstance(name, str) and name in os.environ}
        return context

    def update_context(self, context: Mapping[str, ContextValue]) -> None:
        self._context = merge_context(self._context, context)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r})"

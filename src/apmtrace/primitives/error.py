from __future__ import annotations

import traceback
from typing import TYPE_CHECKING, Any

from .events import EventBean, ErrorRecord, ExceptionRecord
from .stacktrace import capture_backtrace, exception_frames

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .context import ContextValue
    from .transaction import Transaction


class Error(EventBean):
    """A captured exception, optionally linked to the transaction it hit.

    Frames are taken from the exception's traceback. An exception that was
    never raised has no traceback, so the capture site is reported instead.
    """

    def __init__(
        self,
        throwable: BaseException,
        context: Mapping[str, ContextValue] | None = None,
        transaction: Transaction | None = None,
    ) -> None:
        super().__init__(context, transaction)
        self.throwable = throwable

        tb = throwable.__traceback__
        if tb is not None:
            innermost = traceback.extract_tb(tb)[-1]
            self._file = innermost.filename
            self._line = innermost.lineno or 0
            self._frames = exception_frames(tb)
        else:
            self._frames = capture_backtrace()
            self._file = self._frames[0]["abs_path"] if self._frames else "<unknown>"
            self._line = self._frames[0]["lineno"] if self._frames else 0

    @property
    def culprit(self) -> str:
        return f"{self._file}:{self._line}"

    @property
    def exception_type(self) -> str:
        cls = type(self.throwable)
        if cls.__module__ == "builtins":
            return cls.__qualname__
        return f"{cls.__module__}.{cls.__qualname__}"

    @property
    def code(self) -> Any:
        code = getattr(self.throwable, "code", None)
        if code is None:
            code = getattr(self.throwable, "errno", None)
        return code

    @property
    def stacktrace(self) -> list[dict[str, Any]]:
        return list(self._frames)

    def json_serialize(self) -> dict[str, Any]:
        record = ErrorRecord(
            id=self.id,
            timestamp=self.timestamp,
            context=self.get_context(),
            culprit=self.culprit,
            exception=ExceptionRecord(
                message=str(self.throwable),
                type=self.exception_type,
                code=self.code,
                stacktrace=self.stacktrace,
            ),
        )
        if self.transaction is not None:
            record = record.model_copy(
                update={
                    "transaction_id": self.transaction.id,
                    "parent_id": self.transaction.id,
                    "trace_id": self.transaction.id,
                }
            )
            return record.model_dump()
        return record.model_dump(exclude={"transaction_id", "parent_id", "trace_id"})

"""Call-frame capture and mapping to intake stack frame records."""

from __future__ import annotations

import os
import traceback
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from types import TracebackType

Frame = dict[str, Any]

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def map_frames(summary: traceback.StackSummary) -> list[Frame]:
    """Map frames to records, innermost frame first."""
    return [
        {
            "abs_path": frame.filename,
            "filename": os.path.basename(frame.filename),
            "function": frame.name,
            "lineno": frame.lineno,
        }
        for frame in reversed(summary)
    ]


def capture_backtrace(limit: int = 0) -> list[Frame]:
    """Snapshot the caller's stack, skipping frames inside this package.

    ``limit`` bounds the number of returned frames; 0 means unbounded.
    """
    frames = [
        frame
        for frame in traceback.extract_stack()
        if not os.path.abspath(frame.filename).startswith(_PACKAGE_DIR + os.sep)
    ]
    mapped = map_frames(traceback.StackSummary.from_list(frames))
    if limit > 0:
        return mapped[:limit]
    return mapped


def exception_frames(tb: TracebackType | None) -> list[Frame]:
    return map_frames(traceback.extract_tb(tb))

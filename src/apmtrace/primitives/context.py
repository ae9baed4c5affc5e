"""Recursively mergeable context values.

Context is free-form metadata (``user``, ``custom``, ``tags``, ``env`` ...)
attached to every event. Agent-wide shared context is overlaid with
call-specific context: nested mappings merge key by key, everything else
(scalars and lists) is replaced by the overlay.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Union

ContextValue = Union[
    str,
    int,
    float,
    bool,
    None,
    list["ContextValue"],
    dict[str, "ContextValue"],
]

Context = dict[str, ContextValue]


def merge_context(base: Mapping[str, ContextValue] | None, *overlays: Mapping[str, ContextValue] | None) -> Context:
    """Deep-merge ``overlays`` onto ``base``; later overlays win on conflicts.

    Inputs are never mutated.
    """
    result: Context = copy.deepcopy(dict(base)) if base else {}
    for overlay in overlays:
        if overlay:
            _merge_into(result, overlay)
    return result


def _merge_into(target: dict[str, ContextValue], overlay: Mapping[str, ContextValue]) -> None:
    for key, value in overlay.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = copy.deepcopy(value)

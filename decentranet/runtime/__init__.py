# decentranet/runtime/__init__.py
from __future__ import annotations

"""
DecentraNet runtime package (lazy import)

Scripts that only need the vote ledger or the thread sorter should not
pay for requests/HTTP imports pulled in by the sync service, so the
submodules are exposed lazily via __getattr__ (PEP 562).
"""

from importlib import import_module
from typing import Any

__all__ = [
    "votes",
    "threads",
    "sync_report",
    "tokens",
    "reputation",
    "forum",
    "research",
    "social",
    "farcaster_sync",
]

_LAZY_MAP = {name: f"decentranet.runtime.{name}" for name in __all__}


def __getattr__(name: str) -> Any:
    mod_path = _LAZY_MAP.get(name)
    if not mod_path:
        raise AttributeError(name)
    return import_module(mod_path)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_MAP.keys()))

"""
decentranet/runtime/sync_report.py
----------------------------------
Batch publisher with per-item error capture.

run_batch() pushes every item through `publish` and counts the outcome.
A PublishError on one item is recorded in the result and the batch moves
on; nothing short of a programming error aborts the batch.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence, TypeVar

from ..errors import PublishError
from ..models import SyncBatchResult

log = logging.getLogger(__name__)

T = TypeVar("T")

FARCASTER_HASH_MIN_LEN = 10


def looks_synced(hash_value: Optional[str]) -> bool:
    """True for values that look like a Farcaster message hash (0x…)."""
    return bool(hash_value) and hash_value.startswith("0x") and len(hash_value) > FARCASTER_HASH_MIN_LEN


def run_batch(
    category: str,
    items: Sequence[T],
    publish: Callable[[T], str],
    *,
    is_synced: Optional[Callable[[T], bool]] = None,
    on_published: Optional[Callable[[T, str], None]] = None,
    describe: Callable[[T], str] = lambda item: str(getattr(item, "id", item)),
    delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncBatchResult:
    result = SyncBatchResult(category=category, total=len(items))
    published_any = False

    for item in items:
        label = describe(item)
        if is_synced is not None and is_synced(item):
            log.debug("[SYNC] %s %s already synced, skipping", category, label)
            result.synced += 1
            continue

        if published_any and delay > 0:
            sleep(delay)
        published_any = True

        try:
            hash_value = publish(item)
        except PublishError as e:
            result.failed += 1
            result.errors.append(e.message)
            log.warning("[SYNC] %s %s failed: %s", category, label, e.message)
            continue

        result.synced += 1
        if on_published is not None:
            on_published(item, hash_value)
        log.info("[SYNC] %s %s published hash=%s", category, label, hash_value or "-")

    return result

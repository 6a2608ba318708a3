"""
decentranet/runtime/threads.py
------------------------------
Orders the replies of a topic into reading order: parent first, then
its children, siblings oldest first.

Two modes:

- max_depth=None (default): full depth-first nesting. A reply whose
  parent_id does not name another reply in the input (typically it names
  the topic itself) is treated as top-level, so every reply is emitted
  exactly once.
- max_depth=2: the forum's original flattening. Top-level replies and
  their direct children only; deeper replies and orphans are dropped.

Any other max_depth nests recursively but stops descending at that depth.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..models import Reply


def _by_time(replies: Sequence[Reply]) -> List[Reply]:
    # sorted() is stable, ties keep input order
    return sorted(replies, key=lambda r: r.timestamp)


def _sort_two_levels(replies: Sequence[Reply]) -> List[Reply]:
    top_level = _by_time([r for r in replies if not r.parent_id])
    nested = [r for r in replies if r.parent_id]

    out: List[Reply] = []
    for reply in top_level:
        out.append(reply)
        out.extend(_by_time([r for r in nested if r.parent_id == reply.id]))
    return out


def sort_thread(replies: Sequence[Reply], max_depth: Optional[int] = None) -> List[Reply]:
    if max_depth == 2:
        return _sort_two_levels(replies)
    if max_depth is not None and max_depth < 1:
        raise ValueError("max_depth must be None or >= 1")

    ids = {r.id for r in replies}
    roots: List[Reply] = []
    children: Dict[str, List[Reply]] = defaultdict(list)
    for r in replies:
        if r.parent_id and r.parent_id in ids and r.parent_id != r.id:
            children[r.parent_id].append(r)
        else:
            roots.append(r)

    out: List[Reply] = []
    seen: Set[str] = set()

    def walk(root: Reply) -> None:
        # explicit stack: reply chains may run deeper than the recursion limit
        stack: List[Tuple[Reply, int]] = [(root, 1)]
        while stack:
            reply, depth = stack.pop()
            if reply.id in seen:
                continue
            seen.add(reply.id)
            out.append(reply)
            if max_depth is not None and depth >= max_depth:
                continue
            for child in reversed(_by_time(children.get(reply.id, []))):
                stack.append((child, depth + 1))

    for root in _by_time(roots):
        walk(root)
    if max_depth is None:
        # replies caught in a parent_id cycle have no root to hang from
        for r in _by_time(replies):
            walk(r)
    return out


def thread_depths(replies: Sequence[Reply]) -> Dict[str, int]:
    """Depth of every reply as laid out by sort_thread (top-level = 0)."""
    by_id = {r.id: r for r in replies}
    depths: Dict[str, int] = {}
    for r in sort_thread(replies):
        parent = by_id.get(r.parent_id) if r.parent_id else None
        depths[r.id] = depths[parent.id] + 1 if parent is not None and parent.id in depths else 0
    return depths

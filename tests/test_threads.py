import pytest

from decentranet.models import Reply
from decentranet.runtime.threads import sort_thread, thread_depths


def r(rid, ts, parent=None, topic="topic-1"):
    return Reply(id=rid, topic_id=topic, author_fid=1, content=rid, timestamp=ts, parent_id=parent)


def ids(replies):
    return [x.id for x in replies]


def test_parent_then_children_oldest_first():
    replies = [r("a", 2), r("b", 1), r("c", 5, parent="b"), r("d", 3, parent="a")]
    assert ids(sort_thread(replies)) == ["b", "c", "a", "d"]


def test_sort_is_idempotent():
    replies = [r("a", 2), r("b", 1), r("c", 5, parent="b"), r("d", 3, parent="a"), r("e", 4, parent="d")]
    once = sort_thread(replies)
    assert ids(sort_thread(once)) == ids(once)


def test_deep_nesting_is_kept_by_default():
    replies = [r("a", 1), r("b", 2, parent="a"), r("c", 3, parent="b"), r("d", 4, parent="c"), r("e", 5)]
    assert ids(sort_thread(replies)) == ["a", "b", "c", "d", "e"]
    assert thread_depths(replies) == {"a": 0, "b": 1, "c": 2, "d": 3, "e": 0}


def test_legacy_two_levels_drops_grandchildren():
    replies = [r("a", 1), r("b", 2, parent="a"), r("c", 3, parent="b"), r("e", 5)]
    assert ids(sort_thread(replies, max_depth=2)) == ["a", "b", "e"]


def test_orphan_reply_is_top_level():
    replies = [r("a", 3), r("orphan", 1, parent="topic-1"), r("b", 4, parent="a")]
    assert ids(sort_thread(replies)) == ["orphan", "a", "b"]


def test_legacy_mode_drops_orphans():
    replies = [r("a", 3), r("orphan", 1, parent="gone")]
    assert ids(sort_thread(replies, max_depth=2)) == ["a"]


def test_equal_timestamps_keep_input_order():
    replies = [r("x", 1), r("y", 1), r("z", 1)]
    assert ids(sort_thread(replies)) == ["x", "y", "z"]


def test_depth_limit_stops_descent():
    replies = [r("a", 1), r("b", 2, parent="a"), r("c", 3, parent="b")]
    assert ids(sort_thread(replies, max_depth=1)) == ["a"]
    assert ids(sort_thread(replies, max_depth=3)) == ["a", "b", "c"]


def test_cycle_emits_every_reply_once():
    replies = [r("a", 1, parent="b"), r("b", 2, parent="a"), r("c", 3)]
    out = ids(sort_thread(replies))
    assert sorted(out) == ["a", "b", "c"]
    assert len(out) == 3


def test_self_parent_is_top_level():
    replies = [r("a", 2, parent="a"), r("b", 1)]
    assert ids(sort_thread(replies)) == ["b", "a"]


def test_bad_depth_rejected():
    with pytest.raises(ValueError):
        sort_thread([], max_depth=0)


def chain(n):
    return [r("c0", 0)] + [r(f"c{i}", i, parent=f"c{i - 1}") for i in range(1, n)]


def test_very_deep_chain_is_walked_in_order():
    replies = chain(5000)
    out = sort_thread(list(reversed(replies)))
    assert ids(out) == [f"c{i}" for i in range(5000)]
    assert thread_depths(replies)["c4999"] == 4999


def test_children_come_back_in_timestamp_order_after_deep_branch():
    replies = chain(3) + [r("late", 10, parent="c0"), r("early", 5, parent="c0")]
    assert ids(sort_thread(replies)) == ["c0", "c1", "c2", "early", "late"]

import pytest

from decentranet.errors import PublishError
from decentranet.runtime.sync_report import looks_synced, run_batch


def failing_on(*bad):
    def publish(item):
        if item in bad:
            raise PublishError(f"err{item}")
        return f"0x{item:016x}"

    return publish


def test_failures_are_counted_per_item():
    result = run_batch("topics", [1, 2, 3, 4, 5], failing_on(2, 4), describe=str)
    assert result.total == 5
    assert result.synced == 3
    assert result.failed == 2
    assert result.errors == ["err2", "err4"]


def test_total_is_synced_plus_failed():
    result = run_batch("casts", list(range(7)), failing_on(0, 6), describe=str)
    assert result.total == result.synced + result.failed == 7


def test_empty_batch():
    result = run_batch("votes", [], failing_on())
    assert (result.total, result.synced, result.failed, result.errors) == (0, 0, 0, [])


def test_already_synced_items_are_skipped_but_counted():
    published = []

    def publish(item):
        published.append(item)
        return "0xfeedfacecafe"

    result = run_batch("topics", [1, 2, 3], publish, is_synced=lambda i: i == 2, describe=str)
    assert published == [1, 3]
    assert result.synced == 3


def test_on_published_receives_hash():
    written = {}
    result = run_batch(
        "topics",
        [1, 2, 3],
        failing_on(3),
        on_published=lambda item, h: written.__setitem__(item, h),
        describe=str,
    )
    assert written == {1: "0x0000000000000001", 2: "0x0000000000000002"}
    assert result.failed == 1


def test_delay_between_publishes_only():
    sleeps = []
    run_batch("casts", [1, 2, 3], failing_on(), delay=0.5, sleep=sleeps.append, describe=str)
    assert sleeps == [0.5, 0.5]


def test_other_exceptions_abort_the_batch():
    def publish(item):
        raise KeyError(item)

    with pytest.raises(KeyError):
        run_batch("topics", [1], publish, describe=str)


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, False),
        ("", False),
        ("0x1234", False),
        ("abcdef0123456789", False),
        ("0x12345678", False),
        ("0x123456789", True),
    ],
)
def test_looks_synced(value, expected):
    assert looks_synced(value) is expected

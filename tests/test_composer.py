from feedrank.ranking.composer import FEED_TEMPLATE, interleave, partition_by_kind
from feedrank.ranking.types import ContentKind

LONG, REEL, IMAGE, COMMUNITY = (
    ContentKind.LONG,
    ContentKind.REEL,
    ContentKind.IMAGE,
    ContentKind.COMMUNITY,
)


def test_template_skips_empty_kinds_without_gaps():
    queues = {LONG: ["L1", "L2"], REEL: ["R1", "R2"], IMAGE: [], COMMUNITY: []}
    assert interleave(queues, 4) == ["L1", "R1", "L2", "R2"]


def test_full_template_cycle():
    queues = {
        LONG: [f"L{i}" for i in range(1, 6)],
        REEL: [f"R{i}" for i in range(1, 6)],
        IMAGE: ["I1"],
        COMMUNITY: ["C1"],
    }
    assert interleave(queues, 12) == [
        "L1", "R1", "L2", "R2", "L3", "I1", "R3", "C1", "L4", "R4", "L5", "R5",
    ]
    assert len(FEED_TEMPLATE) == 12


def test_template_cycles_until_page_is_full():
    queues = {LONG: [], REEL: [], IMAGE: ["I1", "I2", "I3"], COMMUNITY: ["C1", "C2"]}
    assert interleave(queues, 5) == ["I1", "C1", "I2", "C2", "I3"]


def test_stops_at_page_size():
    queues = {LONG: ["L1", "L2", "L3"], REEL: ["R1"], IMAGE: [], COMMUNITY: []}
    assert interleave(queues, 2) == ["L1", "R1"]


def test_exhausted_queues_return_short_page():
    queues = {LONG: ["L1"], REEL: [], IMAGE: [], COMMUNITY: ["C1"]}
    assert interleave(queues, 10) == ["L1", "C1"]


def test_order_within_a_kind_is_preserved(make_item):
    items = [
        make_item("l-old", hours_ago=10),
        make_item("r-mid", kind=REEL, hours_ago=5),
        make_item("l-new", hours_ago=1),
        make_item("l-mid", hours_ago=4),
        make_item("r-new", kind=REEL, hours_ago=2),
    ]
    queues = partition_by_kind(items)
    assert [i.content_id for i in queues[LONG]] == ["l-new", "l-mid", "l-old"]
    feed = interleave(queues, 10)
    longs = [i.content_id for i in feed if i.kind == LONG]
    reels = [i.content_id for i in feed if i.kind == REEL]
    assert longs == ["l-new", "l-mid", "l-old"]
    assert reels == ["r-new", "r-mid"]


def test_zero_page_size_is_empty():
    assert interleave({LONG: ["L1"]}, 0) == []

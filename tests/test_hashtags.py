from feedrank.ranking.hashtags import growth_pct, trending_tags


def test_growth_pct_rules():
    assert growth_pct(0, 0) == 0
    assert growth_pct(3, 0) == 100
    assert growth_pct(3, 2) == 50
    assert growth_pct(1, 2) == -50
    assert growth_pct(2, 3) == -33


def test_trending_tags_counts_and_windows(make_item, now):
    items = [
        make_item("a", tags={"travel", "food"}, hours_ago=2),
        make_item("b", tags={"travel"}, hours_ago=30),
        make_item("c", tags={"travel"}, hours_ago=100),
        make_item("d", tags={"food"}, hours_ago=40),
        make_item("e", tags={"music"}, hours_ago=5),
    ]
    trends = trending_tags(items, now, limit=30)
    assert [t.tag for t in trends] == ["travel", "food", "music"]
    travel = trends[0]
    assert (travel.count, travel.last_24h, travel.prev_24h) == (3, 1, 1)
    assert travel.growth_pct == 0
    assert trends[2].growth_pct == 100


def test_trending_tags_limit(make_item, now):
    items = [make_item(f"c{i}", tags={f"t{i}"}) for i in range(5)]
    assert [t.tag for t in trending_tags(items, now, limit=2)] == ["t0", "t1"]

from feedrank.config import Settings
from feedrank.ranking.creators import CreatorWeights, build_creator_weights, trending_creators
from feedrank.ranking.types import ContentKind


def test_trending_creators_formula(make_item):
    items = [
        make_item("a1", author_id="a", likes=3),
        make_item("a2", ContentKind.REEL, author_id="a", likes=1, comments=2),
        make_item("b1", ContentKind.IMAGE, author_id="b", likes=10),
    ]
    trends = trending_creators(items, {"a": 5, "c": 1000})
    assert [t.author_id for t in trends] == ["a", "b"]
    a, b = trends
    assert (a.followers, a.posts, a.likes, a.comments) == (5, 2, 4, 2)
    assert a.score == 5 + 2 * 50 + 4 * 10 + 2 * 20
    assert b.followers == 0
    assert b.score == 50 + 100


def test_trending_creators_ties_break_on_author(make_item):
    items = [make_item("z1", author_id="z"), make_item("m1", author_id="m")]
    assert [t.author_id for t in trending_creators(items, {})] == ["m", "z"]


def test_trending_creators_limit_and_weights(make_item):
    items = [make_item(f"c{i}", author_id=f"u{i}", likes=i) for i in range(5)]
    trends = trending_creators(items, {"u0": 100}, CreatorWeights(follower=1, post=0, like=1, comment=0), limit=2)
    assert [(t.author_id, t.score) for t in trends] == [("u0", 100), ("u4", 4)]


def test_creator_weights_follow_settings():
    weights = build_creator_weights(Settings(creator_weight_post=5))
    assert weights.post == 5
    assert weights.comment == 20

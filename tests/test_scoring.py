import math
from datetime import timedelta

import pytest

from feedrank.config import Settings
from feedrank.ranking.scoring import (
    ScoringWeights,
    age_ms,
    build_scoring_profiles,
    engagement_decay_score,
    personalized_score,
    recency,
)
from feedrank.ranking.types import ViewerProfile


def _profile(tags=(), interacted=(), subscribed=()):
    return ViewerProfile(
        viewer_id="viewer",
        liked_content_ids=frozenset({"liked-1"}),
        interest_tags=frozenset(tags),
        interacted_author_ids=frozenset(interacted),
        subscribed_author_ids=frozenset(subscribed),
    )


def test_engagement_decay_default_formula(make_item, now):
    item = make_item("c1", likes=10, comments=5, hours_ago=24)
    expected = (10 * 2 + 5 * 3) * 0.7 + math.exp(-1) * 100
    assert engagement_decay_score(item, now) == pytest.approx(expected)


def test_brand_new_item_without_engagement_scores_recency_weight(make_item, now):
    item = make_item("c1", hours_ago=0)
    # age is clamped to 1ms, so recency is just below 1
    assert engagement_decay_score(item, now) == pytest.approx(100.0, rel=1e-6)
    assert age_ms(now, now) == 1.0


def test_future_timestamp_is_clamped(make_item, now):
    item = make_item("c1", hours_ago=-5)
    assert age_ms(item.created_at, now) == 1.0


def test_newer_item_never_scores_lower_with_equal_engagement(make_item, now):
    ages = [0, 0.5, 1, 6, 24, 72, 24 * 30]
    scores = [
        engagement_decay_score(make_item(f"c{i}", likes=7, comments=2, hours_ago=h), now)
        for i, h in enumerate(ages)
    ]
    assert scores == sorted(scores, reverse=True)


def test_zero_half_life_disables_recency(make_item, now):
    weights = ScoringWeights(half_life_hours=0)
    item = make_item("c1", likes=1)
    assert recency(item.created_at, now, weights) == 0.0
    assert engagement_decay_score(item, now, weights) == pytest.approx(1.4)


def test_view_weight_only_counts_in_profiles_that_set_it(make_item, now):
    profiles = build_scoring_profiles(Settings())
    item = make_item("c1", views=1000, hours_ago=1000)
    assert engagement_decay_score(item, now, profiles["trending"]) < 1
    assert engagement_decay_score(item, now, profiles["videos"]) >= 1000


def test_viral_profile_decays_faster(make_item, now):
    profiles = build_scoring_profiles(Settings())
    item = make_item("c1", hours_ago=12)
    assert recency(item.created_at, now, profiles["viral"]) < recency(
        item.created_at, now, profiles["trending"]
    )


def test_scoring_profiles_follow_settings():
    profiles = build_scoring_profiles(Settings(weight_like=5, viral_half_life_hours=3))
    assert set(profiles) == {"default", "trending", "videos", "viral", "up_next"}
    assert profiles["default"].like == 5
    assert profiles["viral"].half_life_hours == 3


def test_up_next_profile_is_engagement_only(make_item, now):
    weights = build_scoring_profiles(Settings())["up_next"]
    assert weights.recency == 0
    item = make_item("x", likes=1, comments=1, views=10, hours_ago=0)
    assert engagement_decay_score(item, now, weights) == pytest.approx(6.0)


def test_personalized_worked_example(make_item):
    profile = _profile(tags={"travel"}, interacted={"author-a"})
    x = make_item("x", author_id="author-a", tags={"travel"}, likes=10, views=100)
    y = make_item("y", author_id="author-b", likes=50)
    assert personalized_score(x, profile) == pytest.approx(31.2)
    assert personalized_score(y, profile) == pytest.approx(50.0)
    # raw engagement can still win; the formula result is what matters
    assert personalized_score(y, profile) > personalized_score(x, profile)


def test_personalized_boosts_compound(make_item):
    profile = _profile(tags={"a", "b"}, interacted={"author-a"}, subscribed={"author-a"})
    item = make_item("c1", author_id="author-a", tags={"a", "b", "c"}, likes=10)
    assert personalized_score(item, profile) == pytest.approx(10 * 1.5 * 1.4 * 1.3)


@pytest.mark.parametrize("likes,views", [(0, 0), (3, 0), (0, 40), (12, 250)])
def test_personalized_monotone_in_common_tags(make_item, likes, views):
    tags = ["t1", "t2", "t3", "t4"]
    profile = _profile(tags=tags)
    scores = [
        personalized_score(make_item("c", tags=tags[:n], likes=likes, views=views), profile)
        for n in range(len(tags) + 1)
    ]
    assert all(a <= b for a, b in zip(scores, scores[1:]))


def test_zero_engagement_without_affinity_scores_zero(make_item):
    profile = _profile(tags={"travel"})
    assert personalized_score(make_item("c1", tags={"travel"}), profile) == 0


def test_naive_timestamps_are_treated_as_utc(make_item, now):
    aware = make_item("c1", hours_ago=3)
    naive_now = now.replace(tzinfo=None)
    assert age_ms(aware.created_at.replace(tzinfo=None), naive_now) == pytest.approx(
        timedelta(hours=3).total_seconds() * 1000
    )

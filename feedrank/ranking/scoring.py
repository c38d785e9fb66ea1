"""
Scoring functions — pure, deterministic, no I/O.

Two named strategies are kept side by side:

  engagement-decay   score = engagement * W_engagement + recency * W_recency
                     engagement = likes * W_like + comments * W_comment + views * W_view
                     recency    = exp(-age_ms / half_life_ms), age_ms >= 1

  personalized       base  = likes + views * view_weight
                     base *= subscription_boost           (subscribed author)
                     base *= 1 + common_tags * tag_boost
                     base *= author_boost                 (previously liked author)

The decay terms are additive so brand-new content with no engagement still
scores above zero. The personalized boosts compound multiplicatively.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone

from feedrank.config import Settings
from feedrank.ranking.types import ContentItem, ViewerProfile

_HOUR_MS = 60 * 60 * 1000


@dataclass(frozen=True)
class ScoringWeights:
    like: float = 2.0
    comment: float = 3.0
    view: float = 0.0
    engagement: float = 0.7
    recency: float = 100.0
    half_life_hours: float = 24.0

    @property
    def half_life_ms(self) -> float:
        return self.half_life_hours * _HOUR_MS


@dataclass(frozen=True)
class InterestWeights:
    view: float = 0.1
    subscription_boost: float = 1.5
    tag_boost: float = 0.2
    author_boost: float = 1.3


DEFAULT_WEIGHTS = ScoringWeights()
DEFAULT_INTEREST_WEIGHTS = InterestWeights()


def build_scoring_profiles(settings: Settings) -> dict[str, ScoringWeights]:
    """Named engagement-decay profiles; surfaces pick one by name."""
    base = ScoringWeights(
        like=settings.weight_like,
        comment=settings.weight_comment,
        view=settings.weight_view,
        engagement=settings.weight_engagement,
        recency=settings.weight_recency,
        half_life_hours=settings.half_life_hours,
    )
    return {
        "default": base,
        "trending": base,
        "videos": ScoringWeights(
            like=settings.videos_weight_like,
            comment=settings.videos_weight_comment,
            view=settings.videos_weight_view,
            engagement=settings.videos_weight_engagement,
            recency=settings.weight_recency,
            half_life_hours=settings.half_life_hours,
        ),
        "viral": ScoringWeights(
            like=settings.viral_weight_like,
            comment=settings.viral_weight_comment,
            view=settings.viral_weight_view,
            engagement=settings.viral_weight_engagement,
            recency=settings.weight_recency,
            half_life_hours=settings.viral_half_life_hours,
        ),
        "up_next": ScoringWeights(
            like=settings.upnext_weight_like,
            comment=settings.upnext_weight_comment,
            view=settings.upnext_weight_view,
            engagement=settings.upnext_weight_engagement,
            recency=0.0,
            half_life_hours=settings.half_life_hours,
        ),
    }


def build_interest_weights(settings: Settings) -> InterestWeights:
    return InterestWeights(
        view=settings.interest_view_weight,
        subscription_boost=settings.subscription_boost,
        tag_boost=settings.tag_match_boost,
        author_boost=settings.author_match_boost,
    )


def as_utc(ts: datetime) -> datetime:
    # naive timestamps from the store are UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def age_ms(created_at: datetime, now: datetime) -> float:
    delta = (as_utc(now) - as_utc(created_at)).total_seconds() * 1000
    return max(1.0, delta)


def recency(created_at: datetime, now: datetime, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    if weights.half_life_ms <= 0:
        return 0.0
    return math.exp(-age_ms(created_at, now) / weights.half_life_ms)


def engagement(item: ContentItem, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    return (
        item.like_count * weights.like
        + item.comment_count * weights.comment
        + item.view_count * weights.view
    )


def engagement_decay_score(
    item: ContentItem,
    now: datetime,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    return (
        engagement(item, weights) * weights.engagement
        + recency(item.created_at, now, weights) * weights.recency
    )


def common_tag_count(item: ContentItem, profile: ViewerProfile) -> int:
    return len(item.tags & profile.interest_tags)


def personalized_score(
    item: ContentItem,
    profile: ViewerProfile,
    weights: InterestWeights = DEFAULT_INTEREST_WEIGHTS,
) -> float:
    score = item.like_count + item.view_count * weights.view
    if item.author_id in profile.subscribed_author_ids:
        score *= weights.subscription_boost
    score *= 1 + common_tag_count(item, profile) * weights.tag_boost
    if item.author_id in profile.interacted_author_ids:
        score *= weights.author_boost
    return score

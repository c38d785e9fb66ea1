"""Creator ranking from recent public content and all-time followers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from feedrank.config import Settings
from feedrank.ranking.types import ContentItem


@dataclass(frozen=True)
class CreatorWeights:
    follower: float = 1.0
    post: float = 50.0
    like: float = 10.0
    comment: float = 20.0


def build_creator_weights(settings: Settings) -> CreatorWeights:
    return CreatorWeights(
        follower=settings.creator_weight_follower,
        post=settings.creator_weight_post,
        like=settings.creator_weight_like,
        comment=settings.creator_weight_comment,
    )


@dataclass(frozen=True)
class CreatorTrend:
    author_id: str
    followers: int
    posts: int
    likes: int
    comments: int
    score: float


@dataclass
class _Tally:
    posts: int = 0
    likes: int = 0
    comments: int = 0


def tally_authors(items: Iterable[ContentItem]) -> dict[str, _Tally]:
    tallies: dict[str, _Tally] = {}
    for item in items:
        tally = tallies.setdefault(item.author_id, _Tally())
        tally.posts += 1
        tally.likes += item.like_count
        tally.comments += item.comment_count
    return tallies


def trending_creators(
    items: Iterable[ContentItem],
    followers: Mapping[str, int],
    weights: CreatorWeights = CreatorWeights(),
    limit: int = 20,
) -> list[CreatorTrend]:
    """
    Score every author with content in `items`.

    score = followers * W_follower + posts * W_post + likes * W_like + comments * W_comment

    Ties break on author_id so the order is stable across requests.
    """
    trends = []
    for author_id, tally in tally_authors(items).items():
        follower_count = followers.get(author_id, 0)
        score = (
            follower_count * weights.follower
            + tally.posts * weights.post
            + tally.likes * weights.like
            + tally.comments * weights.comment
        )
        trends.append(
            CreatorTrend(
                author_id=author_id,
                followers=follower_count,
                posts=tally.posts,
                likes=tally.likes,
                comments=tally.comments,
                score=score,
            )
        )
    trends.sort(key=lambda t: (-t.score, t.author_id))
    return trends[:limit]

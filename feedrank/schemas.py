"""
Pydantic response schemas for the HTTP layer.
Kept separate from the engine's dataclasses to avoid coupling transport to ranking.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from feedrank.ranking.creators import CreatorTrend
from feedrank.ranking.hashtags import TagTrend
from feedrank.ranking.types import RankedPage, ScoredCandidate


# ──────────────────────────── Ranked items ────────────────────────────────

class RankedItem(BaseModel):
    """One ranked content item with the signals that placed it."""
    content_id: str
    kind: str        # 'long' | 'reel' | 'image' | 'community'
    author_id: str
    title: Optional[str] = None
    tags: list[str]
    like_count: int
    comment_count: int
    view_count: int
    created_at: datetime
    # Ranking signals exposed for debugging
    score: float
    source_reason: str

    @classmethod
    def from_candidate(cls, candidate: ScoredCandidate) -> "RankedItem":
        item = candidate.item
        return cls(
            content_id=item.content_id,
            kind=item.kind.value,
            author_id=item.author_id,
            title=item.title,
            tags=sorted(item.tags),
            like_count=item.like_count,
            comment_count=item.comment_count,
            view_count=item.view_count,
            created_at=item.created_at,
            score=candidate.score,
            source_reason=candidate.source_reason.value,
        )


class RankedPageResponse(BaseModel):
    surface: str
    items: list[RankedItem]
    page: int
    page_size: int
    has_more: bool
    cold_start: bool = False
    degraded_sources: list[str] = []

    @classmethod
    def from_page(cls, page: RankedPage) -> "RankedPageResponse":
        return cls(
            surface=page.surface,
            items=[RankedItem.from_candidate(c) for c in page.items],
            page=page.page,
            page_size=page.page_size,
            has_more=page.has_more,
            cold_start=page.cold_start,
            degraded_sources=list(page.degraded_sources),
        )


# ──────────────────────────── Hashtags ────────────────────────────────────

class TagTrendResponse(BaseModel):
    tag: str
    count: int
    last_24h: int
    prev_24h: int
    growth_pct: int

    @classmethod
    def from_trend(cls, trend: TagTrend) -> "TagTrendResponse":
        return cls(
            tag=trend.tag,
            count=trend.count,
            last_24h=trend.last_24h,
            prev_24h=trend.prev_24h,
            growth_pct=trend.growth_pct,
        )


class HashtagsResponse(BaseModel):
    hashtags: list[TagTrendResponse]


# ──────────────────────────── Creators ────────────────────────────────────

class CreatorTrendResponse(BaseModel):
    author_id: str
    followers: int
    posts: int
    likes: int
    comments: int
    score: float

    @classmethod
    def from_trend(cls, trend: CreatorTrend) -> "CreatorTrendResponse":
        return cls(
            author_id=trend.author_id,
            followers=trend.followers,
            posts=trend.posts,
            likes=trend.likes,
            comments=trend.comments,
            score=trend.score,
        )


class CreatorsResponse(BaseModel):
    creators: list[CreatorTrendResponse]

"""
Core value types shared by every stage of the ranking pipeline.

All of them are immutable snapshots: the engine reads counters and tags
from the content store once per request and never writes them back.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ContentKind(str, Enum):
    LONG = "long"
    REEL = "reel"            # short video
    IMAGE = "image"
    COMMUNITY = "community"


ALL_KINDS: tuple[ContentKind, ...] = (
    ContentKind.LONG,
    ContentKind.REEL,
    ContentKind.IMAGE,
    ContentKind.COMMUNITY,
)


class Visibility(str, Enum):
    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"


class SortOrder(str, Enum):
    NEWEST = "newest"        # created_at desc, id asc
    POPULAR = "popular"      # likes desc, views desc, created_at desc


class SourceReason(str, Enum):
    TAG_MATCH = "tag-match"
    AUTHOR_MATCH = "author-match"
    SUBSCRIPTION = "subscription"
    POPULAR = "popular"
    OWN = "own"


@dataclass(frozen=True)
class ContentItem:
    content_id: str
    kind: ContentKind
    author_id: str
    created_at: datetime
    tags: frozenset[str] = frozenset()
    like_count: int = 0
    comment_count: int = 0
    view_count: int = 0
    archived: bool = False
    visibility: Visibility = Visibility.PUBLIC
    title: Optional[str] = None

    @property
    def is_eligible(self) -> bool:
        """True when the item may appear on a non-owner-facing surface."""
        return not self.archived and self.visibility == Visibility.PUBLIC


@dataclass(frozen=True)
class ViewerProfile:
    """Interest signals derived from one viewer's interaction history."""
    viewer_id: str
    liked_content_ids: frozenset[str]
    interest_tags: frozenset[str]
    interacted_author_ids: frozenset[str]
    subscribed_author_ids: frozenset[str]


@dataclass(frozen=True)
class CandidateFilter:
    """
    Predicate handed to the content store.

    None means "unconstrained"; an empty set matches nothing.
    """
    author_ids: Optional[frozenset[str]] = None
    tags: Optional[frozenset[str]] = None
    content_ids: Optional[frozenset[str]] = None
    exclude_ids: frozenset[str] = frozenset()
    created_after: Optional[datetime] = None
    eligible_only: bool = True

    def matches(self, item: ContentItem) -> bool:
        if self.eligible_only and not item.is_eligible:
            return False
        if self.author_ids is not None and item.author_id not in self.author_ids:
            return False
        if self.tags is not None and not (item.tags & self.tags):
            return False
        if self.content_ids is not None and item.content_id not in self.content_ids:
            return False
        if item.content_id in self.exclude_ids:
            return False
        if self.created_after is not None and item.created_at < self.created_after:
            return False
        return True

    @property
    def is_empty(self) -> bool:
        """True when the filter provably matches nothing."""
        return any(
            s is not None and len(s) == 0
            for s in (self.author_ids, self.tags, self.content_ids)
        )


@dataclass(frozen=True)
class ScoredCandidate:
    item: ContentItem
    score: float
    source_reason: SourceReason


@dataclass(frozen=True)
class RankedPage:
    surface: str
    items: list[ScoredCandidate]
    page: int = 1
    page_size: int = 0
    has_more: bool = False
    degraded_sources: list[str] = field(default_factory=list)
    cold_start: bool = False

    @property
    def content_ids(self) -> list[str]:
        return [c.item.content_id for c in self.items]

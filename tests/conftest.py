import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

import pytest
from fastapi.testclient import TestClient

# Settings are read at import time; point the app at throwaway backends first.
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("FEED_CACHE_ENABLED", "false")
os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
os.environ.setdefault("OTEL_SDK_DISABLED", "true")

from feedrank.config import Settings  # noqa: E402
from feedrank.ranking.engine import RankingEngine  # noqa: E402
from feedrank.ranking.types import (  # noqa: E402
    CandidateFilter,
    ContentItem,
    ContentKind,
    SortOrder,
    Visibility,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _sort_key(sort: SortOrder):
    if sort == SortOrder.POPULAR:
        return lambda i: (-i.like_count, -i.view_count, -i.created_at.timestamp(), i.content_id)
    return lambda i: (-i.created_at.timestamp(), i.content_id)


class FakeContentStore:
    """In-memory ContentStore with per-kind failure and latency injection."""

    def __init__(
        self,
        items: Iterable[ContentItem] = (),
        likes: Optional[Dict[str, List[str]]] = None,
        follows: Optional[Dict[str, List[str]]] = None,
    ):
        self.items: List[ContentItem] = list(items)
        self.likes: Dict[str, List[str]] = likes or {}
        self.follows: Dict[str, List[str]] = follows or {}
        self.failing_kinds: set = set()
        self.slow_kinds: set = set()
        self.profile_broken = False
        self.subscriptions_broken = False
        self.calls: List[tuple] = []

    async def _guard(self, kind: ContentKind) -> None:
        if kind in self.failing_kinds:
            raise RuntimeError(f"{kind.value} collection down")
        if kind in self.slow_kinds:
            await asyncio.sleep(1.0)

    async def fetch_candidates(self, kind, filter: CandidateFilter, sort, limit, offset=0):
        self.calls.append(("fetch", kind, filter, sort, limit, offset))
        await self._guard(kind)
        matched = [i for i in self.items if i.kind == kind and filter.matches(i)]
        matched.sort(key=_sort_key(sort))
        return matched[offset: offset + limit]

    async def count_candidates(self, kind, filter: CandidateFilter):
        self.calls.append(("count", kind, filter))
        await self._guard(kind)
        return sum(1 for i in self.items if i.kind == kind and filter.matches(i))

    async def fetch_liked_content(self, viewer_id):
        if self.profile_broken:
            raise RuntimeError("likes collection down")
        by_id = {i.content_id: i for i in self.items}
        return [by_id[cid] for cid in self.likes.get(viewer_id, []) if cid in by_id]

    async def fetch_subscriptions(self, viewer_id):
        if self.profile_broken or self.subscriptions_broken:
            raise RuntimeError("follows collection down")
        return list(self.follows.get(viewer_id, []))

    async def fetch_follower_counts(self, author_ids):
        if self.subscriptions_broken:
            raise RuntimeError("follows collection down")
        wanted = set(author_ids)
        counts: Dict[str, int] = {}
        for followees in self.follows.values():
            for followee in followees:
                if followee in wanted:
                    counts[followee] = counts.get(followee, 0) + 1
        return counts


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def make_item():
    def _make(
        content_id: str,
        kind: ContentKind = ContentKind.LONG,
        author_id: str = "author-a",
        hours_ago: float = 1.0,
        tags: Iterable[str] = (),
        likes: int = 0,
        comments: int = 0,
        views: int = 0,
        archived: bool = False,
        visibility: Visibility = Visibility.PUBLIC,
    ) -> ContentItem:
        return ContentItem(
            content_id=content_id,
            kind=kind,
            author_id=author_id,
            created_at=NOW - timedelta(hours=hours_ago),
            tags=frozenset(tags),
            like_count=likes,
            comment_count=comments,
            view_count=views,
            archived=archived,
            visibility=visibility,
        )

    return _make


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(source_timeout_seconds=0.05, feed_cache_enabled=False)


@pytest.fixture()
def make_engine(test_settings):
    def _make(store: FakeContentStore) -> RankingEngine:
        return RankingEngine(store, test_settings, clock=lambda: NOW)

    return _make


@pytest.fixture()
def fake_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture()
def test_client(fake_store, make_engine):
    # Import after env is set so the module-level settings pick it up
    from feedrank.dependencies import get_ranking_engine
    from feedrank.main import app

    app.dependency_overrides[get_ranking_engine] = lambda: make_engine(fake_store)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

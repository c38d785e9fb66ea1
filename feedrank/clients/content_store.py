"""
Content store adapter — read-only typed access to the four content kinds.

The ranking engine depends only on the ContentStore protocol. SqlContentStore
is the production implementation over the async SQLAlchemy models; it opens
a fresh session per call so the engine's concurrent per-kind fetches never
share one.
"""
import logging
from typing import Protocol

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from feedrank.models import Content, ContentTag, Follow, Like
from feedrank.ranking.scoring import as_utc
from feedrank.ranking.types import (
    CandidateFilter,
    ContentItem,
    ContentKind,
    SortOrder,
    Visibility,
)

logger = logging.getLogger(__name__)


class ContentStore(Protocol):
    async def fetch_candidates(
        self,
        kind: ContentKind,
        filter: CandidateFilter,
        sort: SortOrder,
        limit: int,
        offset: int = 0,
    ) -> list[ContentItem]: ...

    async def count_candidates(self, kind: ContentKind, filter: CandidateFilter) -> int: ...

    async def fetch_liked_content(self, viewer_id: str) -> list[ContentItem]: ...

    async def fetch_subscriptions(self, viewer_id: str) -> list[str]: ...

    async def fetch_follower_counts(self, author_ids: list[str]) -> dict[str, int]: ...


def to_item(row: Content) -> ContentItem:
    return ContentItem(
        content_id=row.content_id,
        kind=ContentKind(row.kind),
        author_id=row.author_id,
        created_at=as_utc(row.created_at),
        tags=frozenset(t.tag for t in row.tags),
        like_count=row.like_count or 0,
        comment_count=row.comment_count or 0,
        view_count=row.view_count or 0,
        archived=bool(row.archived),
        visibility=Visibility(row.visibility),
        title=row.title,
    )


def _apply_filter(stmt: Select, kind: ContentKind, flt: CandidateFilter) -> Select:
    stmt = stmt.where(Content.kind == kind.value)
    if flt.eligible_only:
        stmt = stmt.where(
            Content.archived.is_(False),
            Content.visibility == Visibility.PUBLIC.value,
        )
    if flt.author_ids is not None:
        stmt = stmt.where(Content.author_id.in_(sorted(flt.author_ids)))
    if flt.tags is not None:
        tagged = select(ContentTag.content_id).where(ContentTag.tag.in_(sorted(flt.tags)))
        stmt = stmt.where(Content.content_id.in_(tagged))
    if flt.content_ids is not None:
        stmt = stmt.where(Content.content_id.in_(sorted(flt.content_ids)))
    if flt.exclude_ids:
        stmt = stmt.where(Content.content_id.not_in(sorted(flt.exclude_ids)))
    if flt.created_after is not None:
        # stored timestamps are naive UTC
        stmt = stmt.where(Content.created_at >= as_utc(flt.created_after).replace(tzinfo=None))
    return stmt


def _apply_sort(stmt: Select, sort: SortOrder) -> Select:
    if sort == SortOrder.POPULAR:
        return stmt.order_by(
            Content.like_count.desc(),
            Content.view_count.desc(),
            Content.created_at.desc(),
            Content.content_id.asc(),
        )
    return stmt.order_by(Content.created_at.desc(), Content.content_id.asc())


class SqlContentStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_candidates(
        self,
        kind: ContentKind,
        filter: CandidateFilter,
        sort: SortOrder,
        limit: int,
        offset: int = 0,
    ) -> list[ContentItem]:
        if filter.is_empty or limit <= 0:
            return []
        stmt = _apply_sort(_apply_filter(select(Content), kind, filter), sort)
        stmt = stmt.offset(offset).limit(limit)
        async with self._session_factory() as session:
            rows = await session.execute(stmt)
            return [to_item(row) for row in rows.scalars().all()]

    async def count_candidates(self, kind: ContentKind, filter: CandidateFilter) -> int:
        if filter.is_empty:
            return 0
        stmt = _apply_filter(
            select(func.count()).select_from(Content), kind, filter
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def fetch_liked_content(self, viewer_id: str) -> list[ContentItem]:
        stmt = (
            select(Content)
            .join(Like, Like.content_id == Content.content_id)
            .where(Like.user_id == viewer_id)
            .order_by(Like.created_at.desc(), Content.content_id.asc())
        )
        async with self._session_factory() as session:
            rows = await session.execute(stmt)
            return [to_item(row) for row in rows.scalars().all()]

    async def fetch_subscriptions(self, viewer_id: str) -> list[str]:
        stmt = (
            select(Follow.followee_id)
            .where(Follow.follower_id == viewer_id)
            .order_by(Follow.followee_id)
        )
        async with self._session_factory() as session:
            rows = await session.execute(stmt)
            return [r[0] for r in rows.all()]

    async def fetch_follower_counts(self, author_ids: list[str]) -> dict[str, int]:
        """All-time follower count per author; authors nobody follows are absent."""
        if not author_ids:
            return {}
        stmt = (
            select(Follow.followee_id, func.count())
            .where(Follow.followee_id.in_(sorted(set(author_ids))))
            .group_by(Follow.followee_id)
        )
        async with self._session_factory() as session:
            rows = await session.execute(stmt)
            return {followee: int(count) for followee, count in rows.all()}

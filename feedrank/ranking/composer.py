"""
Home-feed composer.

Interleaves per-kind queues by a fixed 12-slot template so low-volume kinds
(community posts) are not starved by high-volume ones:

  long, reel, long, reel, long, image, reel, community, long, reel, long, reel

Empty kinds are skipped without leaving a gap. The template repeats while
any queue has items; anything left after that is drained long → reel →
image → community. Order inside one kind is never changed.
"""
from __future__ import annotations

from collections import deque
from typing import Iterable, TypeVar

from feedrank.ranking.scoring import as_utc
from feedrank.ranking.types import ALL_KINDS, ContentItem, ContentKind

T = TypeVar("T")

FEED_TEMPLATE: tuple[ContentKind, ...] = (
    ContentKind.LONG,
    ContentKind.REEL,
    ContentKind.LONG,
    ContentKind.REEL,
    ContentKind.LONG,
    ContentKind.IMAGE,
    ContentKind.REEL,
    ContentKind.COMMUNITY,
    ContentKind.LONG,
    ContentKind.REEL,
    ContentKind.LONG,
    ContentKind.REEL,
)

BACKFILL_ORDER: tuple[ContentKind, ...] = (
    ContentKind.LONG,
    ContentKind.REEL,
    ContentKind.IMAGE,
    ContentKind.COMMUNITY,
)


def newest_first(items: Iterable[ContentItem]) -> list[ContentItem]:
    return sorted(items, key=lambda i: (-as_utc(i.created_at).timestamp(), i.content_id))


def partition_by_kind(items: Iterable[ContentItem]) -> dict[ContentKind, list[ContentItem]]:
    """Split items into one newest-first queue per kind."""
    queues: dict[ContentKind, list[ContentItem]] = {kind: [] for kind in ALL_KINDS}
    for item in items:
        queues[item.kind].append(item)
    return {kind: newest_first(queue) for kind, queue in queues.items()}


def interleave(
    queues: dict[ContentKind, list[T]],
    page_size: int,
    template: tuple[ContentKind, ...] = FEED_TEMPLATE,
) -> list[T]:
    if page_size <= 0:
        return []

    pending = {kind: deque(queues.get(kind, ())) for kind in ALL_KINDS}
    feed: list[T] = []

    while len(feed) < page_size and any(pending.values()):
        produced = False
        for kind in template:
            if len(feed) >= page_size:
                break
            if pending[kind]:
                feed.append(pending[kind].popleft())
                produced = True
        if not produced:
            # only kinds outside the template are left
            break

    for kind in BACKFILL_ORDER:
        while pending[kind] and len(feed) < page_size:
            feed.append(pending[kind].popleft())

    return feed

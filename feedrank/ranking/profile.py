"""
Interaction profile builder.

A profile is rebuilt from scratch on every personalized request:

  liked content (all kinds, full history) ─┬─> liked_content_ids
                                           ├─> interest_tags        (union of tags)
                                           └─> interacted_author_ids
  explicit subscriptions ──────────────────────> subscribed_author_ids

A viewer with no likes is a cold start: build() returns None instead of an
empty profile so the caller serves the non-personalized ranking.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from feedrank.ranking.errors import ProfileUnavailable
from feedrank.ranking.types import ContentItem, ViewerProfile

if TYPE_CHECKING:
    from feedrank.clients.content_store import ContentStore

logger = logging.getLogger(__name__)


def derive_profile(
    viewer_id: str,
    liked: list[ContentItem],
    subscriptions: list[str],
) -> ViewerProfile:
    tags: set[str] = set()
    authors: set[str] = set()
    for item in liked:
        tags.update(item.tags)
        authors.add(item.author_id)
    return ViewerProfile(
        viewer_id=viewer_id,
        liked_content_ids=frozenset(item.content_id for item in liked),
        interest_tags=frozenset(tags),
        interacted_author_ids=frozenset(authors),
        subscribed_author_ids=frozenset(subscriptions),
    )


class ProfileBuilder:
    def __init__(self, store: "ContentStore", timeout: float) -> None:
        self._store = store
        self._timeout = timeout

    async def build(self, viewer_id: str) -> Optional[ViewerProfile]:
        """
        Return the viewer's profile, or None on cold start.

        Raises ProfileUnavailable when the interaction history cannot be read.
        """
        results = await asyncio.gather(
            asyncio.wait_for(self._store.fetch_liked_content(viewer_id), self._timeout),
            asyncio.wait_for(self._store.fetch_subscriptions(viewer_id), self._timeout),
            return_exceptions=True,
        )
        # both reads are awaited to completion; the first failure wins
        for result in results:
            if isinstance(result, asyncio.TimeoutError):
                raise ProfileUnavailable(f"interaction history for {viewer_id} timed out") from result
            if isinstance(result, BaseException):
                raise ProfileUnavailable(
                    f"interaction history for {viewer_id} unreadable: {result}"
                ) from result
        liked, subscriptions = results

        if not liked:
            logger.info("Cold start for viewer %s (no liked content)", viewer_id)
            return None

        profile = derive_profile(viewer_id, list(liked), list(subscriptions))
        logger.debug(
            "Profile for %s: %d likes, %d tags, %d authors, %d subscriptions",
            viewer_id,
            len(profile.liked_content_ids),
            len(profile.interest_tags),
            len(profile.interacted_author_ids),
            len(profile.subscribed_author_ids),
        )
        return profile

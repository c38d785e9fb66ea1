"""
Priority-ordered merge and deduplication of candidate lists.

Lists are walked tag-match → author-match → subscription → popular. The first
occurrence of an id wins; later duplicates are dropped, not merged, so an
item's source_reason names the highest-priority list that produced it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from feedrank.ranking.scoring import as_utc
from feedrank.ranking.types import ContentItem, ScoredCandidate, SourceReason

logger = logging.getLogger(__name__)

REASON_PRIORITY: tuple[SourceReason, ...] = (
    SourceReason.TAG_MATCH,
    SourceReason.AUTHOR_MATCH,
    SourceReason.SUBSCRIPTION,
    SourceReason.POPULAR,
    SourceReason.OWN,
)


@dataclass(frozen=True)
class CandidateList:
    reason: SourceReason
    items: list[ContentItem] = field(default_factory=list)


def _priority(reason: SourceReason) -> int:
    return REASON_PRIORITY.index(reason)


def merge_candidates(
    lists: Iterable[CandidateList],
    exclude_ids: Iterable[str] = (),
) -> list[tuple[ContentItem, SourceReason]]:
    """
    Merge candidate lists into one unique pool.

    Ineligible items (archived or non-public) and ids in exclude_ids are
    dropped before anything else.
    """
    ordered = sorted(lists, key=lambda cl: _priority(cl.reason))
    excluded = set(exclude_ids)
    seen: set[str] = set()
    pool: list[tuple[ContentItem, SourceReason]] = []
    dropped = 0
    for candidates in ordered:
        for item in candidates.items:
            if not item.is_eligible or item.content_id in excluded:
                dropped += 1
                continue
            if item.content_id in seen:
                continue
            seen.add(item.content_id)
            pool.append((item, candidates.reason))
    if dropped:
        logger.debug("Merge dropped %d excluded/ineligible candidates", dropped)
    return pool


def sort_key(candidate: ScoredCandidate) -> tuple[float, float, str]:
    # score desc, then newest, then id for a total order
    return (
        -candidate.score,
        -as_utc(candidate.item.created_at).timestamp(),
        candidate.item.content_id,
    )


def rank_candidates(candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    return sorted(candidates, key=sort_key)

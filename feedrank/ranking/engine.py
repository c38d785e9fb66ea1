"""
Ranking engine facade — one entry point per ranked surface.

Per-request pipeline:

  ColdStart → ProfileBuilt → CandidatesFetched → Scored → Deduplicated
            → (Composed) → Paginated → Done

  Composed is only entered by the home feed. Every other surface goes from
  Deduplicated straight to Paginated.

Surfaces:
  home feed       own + subscribed authors, newest-first per kind, interleaved
  personalized    tag / author / subscription retrieval, personalized score;
                  cold start or unreadable profile → trending ranking
  trending        public content in a timeframe window, engagement-decay score
  up next         same tags or same author as one seed item, engagement score
  subscriptions   newest content from subscribed authors
  hashtags        tag frequency and growth over the last week
  tag content     newest content carrying one tag
  creators        authors ranked by followers and last-month activity

The engine owns no state between requests. Per-kind fetches are fanned out
concurrently with their own timeout; a failed kind degrades the response and
only a request where every fetch failed raises ServiceDegraded.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from opentelemetry import trace

from feedrank.config import Settings, settings as default_settings
from feedrank.ranking.aggregator import CandidateList, merge_candidates, rank_candidates
from feedrank.ranking.composer import interleave, newest_first, partition_by_kind
from feedrank.ranking.creators import CreatorTrend, build_creator_weights, trending_creators
from feedrank.ranking.errors import InvalidSeed, ProfileUnavailable, ServiceDegraded
from feedrank.ranking.hashtags import TagTrend, trending_tags
from feedrank.ranking.profile import ProfileBuilder
from feedrank.ranking.scoring import (
    ScoringWeights,
    build_interest_weights,
    build_scoring_profiles,
    engagement_decay_score,
    personalized_score,
)
from feedrank.ranking.sources import FanOutResult, FetchRequest, fan_out
from feedrank.ranking.types import (
    ALL_KINDS,
    CandidateFilter,
    ContentItem,
    ContentKind,
    RankedPage,
    ScoredCandidate,
    SortOrder,
    SourceReason,
    ViewerProfile,
)
from feedrank.telemetry import (
    CANDIDATES_TOTAL,
    COLD_START_TOTAL,
    PROFILE_FALLBACK_TOTAL,
    SURFACE_LATENCY,
)

if TYPE_CHECKING:
    from feedrank.clients.content_store import ContentStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

TIMEFRAME_DAYS = {"1d": 1, "7d": 7, "30d": 30}
DEFAULT_TIMEFRAME_DAYS = 7
TIMEFRAME_PATTERN = "^(" + "|".join(TIMEFRAME_DAYS) + ")$"


class Stage(str, Enum):
    COLD_START = "ColdStart"
    PROFILE_BUILT = "ProfileBuilt"
    CANDIDATES_FETCHED = "CandidatesFetched"
    SCORED = "Scored"
    DEDUPLICATED = "Deduplicated"
    COMPOSED = "Composed"
    PAGINATED = "Paginated"
    DONE = "Done"


def timeframe_days(timeframe: Optional[str]) -> int:
    return TIMEFRAME_DAYS.get(timeframe or "", DEFAULT_TIMEFRAME_DAYS)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _advance(span, stage: Stage) -> None:
    span.add_event(stage.value)


class RankingEngine:
    def __init__(
        self,
        store: "ContentStore",
        config: Settings = default_settings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._config = config
        self._clock = clock
        self._timeout = config.source_timeout_seconds
        self._profiles = build_scoring_profiles(config)
        self._interest = build_interest_weights(config)
        self._creator_weights = build_creator_weights(config)
        self._profile_builder = ProfileBuilder(store, self._timeout)

    # ── helpers ───────────────────────────────────────────────────────────

    def _limit(self, limit: Optional[int], default: int) -> int:
        if limit is None:
            limit = default
        return max(1, min(limit, self._config.max_limit))

    def _weights(self, profile: str) -> ScoringWeights:
        try:
            return self._profiles[profile]
        except KeyError:
            raise ValueError(f"unknown scoring profile '{profile}'") from None

    def _candidate_requests(
        self,
        reason: SourceReason,
        flt: CandidateFilter,
        sort: SortOrder,
        limit: int,
        kinds: Iterable[ContentKind] = ALL_KINDS,
    ) -> list[FetchRequest]:
        if flt.is_empty:
            return []

        def call(kind: ContentKind):
            return lambda: self._store.fetch_candidates(kind, flt, sort, limit)

        return [
            FetchRequest(key=(reason, kind), kind=kind, call=call(kind), label=reason.value)
            for kind in kinds
        ]

    async def _fetch(self, requests: list[FetchRequest], surface: str) -> FanOutResult:
        with tracer.start_as_current_span("fetch_candidates") as span:
            span.set_attribute("fetch.requests", len(requests))
            outcome = await fan_out(requests, self._timeout)
            span.set_attribute("fetch.degraded", ",".join(outcome.degraded_kinds))
        if outcome.all_failed:
            logger.error(
                "Surface %s: every content source failed (%s)",
                surface,
                ", ".join(outcome.degraded_kinds),
            )
            raise ServiceDegraded(outcome.degraded_kinds)
        return outcome

    @staticmethod
    def _lists(outcome: FanOutResult, reasons: Iterable[SourceReason]) -> list[CandidateList]:
        lists: list[CandidateList] = []
        for reason in reasons:
            items: list[ContentItem] = []
            for kind in ALL_KINDS:
                items.extend(outcome.get((reason, kind), []))
            lists.append(CandidateList(reason, items))
        return lists

    async def _subscriptions(self, viewer_id: str) -> list[str]:
        try:
            return list(
                await asyncio.wait_for(self._store.fetch_subscriptions(viewer_id), self._timeout)
            )
        except Exception as exc:
            raise ProfileUnavailable(f"subscriptions for {viewer_id} unreadable: {exc}") from exc

    # ── surfaces ──────────────────────────────────────────────────────────

    async def get_home_feed(
        self,
        viewer_id: str,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> RankedPage:
        surface = "home_feed"
        page = max(1, page)
        size = self._limit(page_size, self._config.default_page_size)
        skip = (page - 1) * size
        if page > self._config.max_page:
            # pages past max_page are never fetched
            logger.info("Home feed page %d for %s is past the last served page", page, viewer_id)
            return RankedPage(surface=surface, items=[], page=page, page_size=size, has_more=False)

        with SURFACE_LATENCY.labels(surface=surface).time(), \
                tracer.start_as_current_span(surface) as span:
            span.set_attribute("viewer.id", viewer_id)
            now = self._clock()
            degraded: list[str] = []

            try:
                subscriptions = await self._subscriptions(viewer_id)
            except ProfileUnavailable as exc:
                logger.warning("Home feed for %s without subscriptions: %s", viewer_id, exc)
                subscriptions = []
                degraded.append("subscriptions")
            _advance(span, Stage.PROFILE_BUILT)

            authors = frozenset(subscriptions) | {viewer_id}
            flt = CandidateFilter(author_ids=authors)
            fetch_requests = self._candidate_requests(
                SourceReason.SUBSCRIPTION, flt, SortOrder.NEWEST, skip + size
            )
            count_requests = [
                FetchRequest(
                    key=kind,
                    kind=kind,
                    call=(lambda k=kind: self._store.count_candidates(k, flt)),
                    label="count",
                )
                for kind in ALL_KINDS
            ]
            fetched, counted = await asyncio.gather(
                self._fetch(fetch_requests, surface),
                fan_out(count_requests, self._timeout),
            )
            _advance(span, Stage.CANDIDATES_FETCHED)

            items = self._lists(fetched, [SourceReason.SUBSCRIPTION])[0].items
            own = [i for i in items if i.author_id == viewer_id]
            others = [i for i in items if i.author_id != viewer_id]
            pool = merge_candidates(
                [
                    CandidateList(SourceReason.OWN, own),
                    CandidateList(SourceReason.SUBSCRIPTION, others),
                ]
            )
            reasons = {item.content_id: reason for item, reason in pool}
            _advance(span, Stage.DEDUPLICATED)

            # page n is items [skip, skip + size) of the full interleaved sequence
            with tracer.start_as_current_span("compose"):
                composed = interleave(
                    partition_by_kind(item for item, _ in pool), skip + size
                )[skip:]
            _advance(span, Stage.COMPOSED)

            weights = self._weights("default")
            ranked = [
                ScoredCandidate(
                    item=item,
                    score=engagement_decay_score(item, now, weights),
                    source_reason=reasons[item.content_id],
                )
                for item in composed
            ]

            total = sum(counted.results.values())
            has_more = total > skip + len(ranked) and page < self._config.max_page
            degraded.extend(sorted(set(fetched.degraded_kinds) | set(counted.degraded_kinds)))
            _advance(span, Stage.PAGINATED)

            CANDIDATES_TOTAL.labels(surface=surface).inc(len(pool))
            span.set_attribute("feed.candidates", len(pool))
            span.set_attribute("feed.returned", len(ranked))
            span.set_attribute("feed.degraded", ",".join(degraded))
            _advance(span, Stage.DONE)

            return RankedPage(
                surface=surface,
                items=ranked,
                page=page,
                page_size=size,
                has_more=has_more,
                degraded_sources=degraded,
            )

    async def get_personalized(
        self,
        viewer_id: str,
        limit: Optional[int] = None,
        timeframe: Optional[str] = None,
    ) -> RankedPage:
        surface = "personalized"
        limit = self._limit(limit, self._config.default_limit)
        timeframe = timeframe or self._config.default_timeframe

        with SURFACE_LATENCY.labels(surface=surface).time(), \
                tracer.start_as_current_span(surface) as span:
            span.set_attribute("viewer.id", viewer_id)

            try:
                with tracer.start_as_current_span("build_profile"):
                    profile = await self._profile_builder.build(viewer_id)
            except ProfileUnavailable as exc:
                logger.warning(
                    "Profile unavailable for %s, serving engagement-decay ranking: %s",
                    viewer_id,
                    exc,
                )
                PROFILE_FALLBACK_TOTAL.inc()
                span.set_attribute("personalized.fallback", "profile_unavailable")
                fallback = await self.get_trending(timeframe, limit)
                return replace(
                    fallback,
                    surface=surface,
                    degraded_sources=["profile"] + fallback.degraded_sources,
                )

            if profile is None:
                _advance(span, Stage.COLD_START)
                COLD_START_TOTAL.inc()
                span.set_attribute("personalized.cold_start", True)
                fallback = await self.get_trending(timeframe, limit)
                return replace(fallback, surface=surface, cold_start=True)

            _advance(span, Stage.PROFILE_BUILT)
            page = await self._rank_for_profile(profile, limit, span, surface)
            _advance(span, Stage.DONE)
            return page

    async def _rank_for_profile(
        self,
        profile: ViewerProfile,
        limit: int,
        span,
        surface: str,
    ) -> RankedPage:
        cap = self._config.candidate_limit
        excluded = profile.liked_content_ids
        requests = (
            self._candidate_requests(
                SourceReason.TAG_MATCH,
                CandidateFilter(tags=profile.interest_tags, exclude_ids=excluded),
                SortOrder.NEWEST,
                cap,
            )
            + self._candidate_requests(
                SourceReason.AUTHOR_MATCH,
                CandidateFilter(author_ids=profile.interacted_author_ids, exclude_ids=excluded),
                SortOrder.NEWEST,
                cap,
            )
            + self._candidate_requests(
                SourceReason.SUBSCRIPTION,
                CandidateFilter(author_ids=profile.subscribed_author_ids, exclude_ids=excluded),
                SortOrder.NEWEST,
                cap,
            )
        )
        outcome = await self._fetch(requests, surface)
        degraded = set(outcome.degraded_kinds)
        lists = self._lists(
            outcome,
            [SourceReason.TAG_MATCH, SourceReason.AUTHOR_MATCH, SourceReason.SUBSCRIPTION],
        )
        pool = merge_candidates(lists, exclude_ids=excluded)

        if len(pool) < limit:
            # thin pool: top up with per-kind popular content
            popular = await fan_out(
                self._candidate_requests(
                    SourceReason.POPULAR,
                    CandidateFilter(exclude_ids=excluded),
                    SortOrder.POPULAR,
                    limit,
                ),
                self._timeout,
            )
            degraded |= set(popular.degraded_kinds)
            pool = merge_candidates(
                lists + self._lists(popular, [SourceReason.POPULAR]),
                exclude_ids=excluded,
            )
        _advance(span, Stage.CANDIDATES_FETCHED)
        _advance(span, Stage.DEDUPLICATED)

        with tracer.start_as_current_span("score"):
            scored = [
                ScoredCandidate(item, personalized_score(item, profile, self._interest), reason)
                for item, reason in pool
            ]
            _advance(span, Stage.SCORED)
            ranked = rank_candidates(scored)
        _advance(span, Stage.PAGINATED)

        CANDIDATES_TOTAL.labels(surface=surface).inc(len(pool))
        span.set_attribute("ranking.candidates", len(pool))
        span.set_attribute("ranking.degraded", ",".join(sorted(degraded)))
        return RankedPage(
            surface=surface,
            items=ranked[:limit],
            page=1,
            page_size=limit,
            has_more=len(ranked) > limit,
            degraded_sources=sorted(degraded),
        )

    async def get_trending(
        self,
        timeframe: Optional[str] = None,
        limit: Optional[int] = None,
        profile: str = "trending",
        kinds: Optional[Iterable[ContentKind]] = None,
    ) -> RankedPage:
        surface = "trending"
        limit = self._limit(limit, self._config.default_limit)
        weights = self._weights(profile)
        kinds = tuple(kinds) if kinds else ALL_KINDS

        with SURFACE_LATENCY.labels(surface=surface).time(), \
                tracer.start_as_current_span(surface) as span:
            now = self._clock()
            days = timeframe_days(timeframe or self._config.default_timeframe)
            span.set_attribute("trending.window_days", days)
            span.set_attribute("trending.profile", profile)

            flt = CandidateFilter(created_after=now - timedelta(days=days))
            outcome = await self._fetch(
                self._candidate_requests(
                    SourceReason.POPULAR,
                    flt,
                    SortOrder.POPULAR,
                    self._config.candidate_limit,
                    kinds=kinds,
                ),
                surface,
            )
            _advance(span, Stage.CANDIDATES_FETCHED)

            pool = merge_candidates(self._lists(outcome, [SourceReason.POPULAR]))
            _advance(span, Stage.DEDUPLICATED)

            with tracer.start_as_current_span("score"):
                ranked = rank_candidates(
                    ScoredCandidate(item, engagement_decay_score(item, now, weights), reason)
                    for item, reason in pool
                )
            _advance(span, Stage.SCORED)
            _advance(span, Stage.PAGINATED)

            CANDIDATES_TOTAL.labels(surface=surface).inc(len(pool))
            span.set_attribute("ranking.candidates", len(pool))
            _advance(span, Stage.DONE)
            return RankedPage(
                surface=surface,
                items=ranked[:limit],
                page=1,
                page_size=limit,
                has_more=len(ranked) > limit,
                degraded_sources=outcome.degraded_kinds,
            )

    async def get_up_next(self, content_id: str, limit: Optional[int] = None) -> RankedPage:
        surface = "up_next"
        limit = self._limit(limit, self._config.default_limit)

        with SURFACE_LATENCY.labels(surface=surface).time(), \
                tracer.start_as_current_span(surface) as span:
            span.set_attribute("seed.id", content_id)

            lookup = await self._fetch(
                self._candidate_requests(
                    SourceReason.POPULAR,
                    CandidateFilter(content_ids=frozenset({content_id}), eligible_only=False),
                    SortOrder.NEWEST,
                    1,
                ),
                surface,
            )
            found = self._lists(lookup, [SourceReason.POPULAR])[0].items
            if not found:
                logger.info("Up-next seed %s not found", content_id)
                raise InvalidSeed(f"content {content_id} not found")
            seed = found[0]
            _advance(span, Stage.PROFILE_BUILT)

            excluded = frozenset({seed.content_id})
            cap = self._config.candidate_limit
            outcome = await self._fetch(
                self._candidate_requests(
                    SourceReason.TAG_MATCH,
                    CandidateFilter(tags=seed.tags, exclude_ids=excluded),
                    SortOrder.NEWEST,
                    cap,
                )
                + self._candidate_requests(
                    SourceReason.AUTHOR_MATCH,
                    CandidateFilter(author_ids=frozenset({seed.author_id}), exclude_ids=excluded),
                    SortOrder.NEWEST,
                    cap,
                ),
                surface,
            )
            _advance(span, Stage.CANDIDATES_FETCHED)

            pool = merge_candidates(
                self._lists(outcome, [SourceReason.TAG_MATCH, SourceReason.AUTHOR_MATCH]),
                exclude_ids=excluded,
            )
            _advance(span, Stage.DEDUPLICATED)

            # raw engagement only; the recency term is zero in this profile
            weights = self._weights("up_next")
            with tracer.start_as_current_span("score"):
                ranked = rank_candidates(
                    ScoredCandidate(item, engagement_decay_score(item, self._clock(), weights), reason)
                    for item, reason in pool
                )
            _advance(span, Stage.SCORED)
            _advance(span, Stage.PAGINATED)

            degraded = sorted(set(lookup.degraded_kinds) | set(outcome.degraded_kinds))
            CANDIDATES_TOTAL.labels(surface=surface).inc(len(pool))
            span.set_attribute("ranking.candidates", len(pool))
            _advance(span, Stage.DONE)
            return RankedPage(
                surface=surface,
                items=ranked[:limit],
                page=1,
                page_size=limit,
                has_more=len(ranked) > limit,
                degraded_sources=degraded,
            )

    async def get_subscriptions(self, viewer_id: str, limit: Optional[int] = None) -> RankedPage:
        surface = "subscriptions"
        limit = self._limit(limit, self._config.default_limit)

        with SURFACE_LATENCY.labels(surface=surface).time(), \
                tracer.start_as_current_span(surface) as span:
            span.set_attribute("viewer.id", viewer_id)
            now = self._clock()

            try:
                subscriptions = await self._subscriptions(viewer_id)
            except ProfileUnavailable as exc:
                logger.warning("Subscriptions unavailable for %s, serving trending: %s", viewer_id, exc)
                PROFILE_FALLBACK_TOTAL.inc()
                fallback = await self.get_trending(limit=limit)
                return replace(
                    fallback,
                    surface=surface,
                    degraded_sources=["subscriptions"] + fallback.degraded_sources,
                )

            if not subscriptions:
                logger.info("Viewer %s has no subscriptions, serving trending", viewer_id)
                fallback = await self.get_trending(limit=limit)
                return replace(fallback, surface=surface, cold_start=True)
            _advance(span, Stage.PROFILE_BUILT)

            outcome = await self._fetch(
                self._candidate_requests(
                    SourceReason.SUBSCRIPTION,
                    CandidateFilter(author_ids=frozenset(subscriptions)),
                    SortOrder.NEWEST,
                    limit,
                ),
                surface,
            )
            _advance(span, Stage.CANDIDATES_FETCHED)

            pool = merge_candidates(self._lists(outcome, [SourceReason.SUBSCRIPTION]))
            _advance(span, Stage.DEDUPLICATED)

            weights = self._weights("default")
            ordered = newest_first(item for item, _ in pool)
            ranked = [
                ScoredCandidate(item, engagement_decay_score(item, now, weights), SourceReason.SUBSCRIPTION)
                for item in ordered
            ]
            _advance(span, Stage.SCORED)
            _advance(span, Stage.PAGINATED)

            CANDIDATES_TOTAL.labels(surface=surface).inc(len(pool))
            _advance(span, Stage.DONE)
            return RankedPage(
                surface=surface,
                items=ranked[:limit],
                page=1,
                page_size=limit,
                has_more=len(ranked) > limit,
                degraded_sources=outcome.degraded_kinds,
            )

    async def get_trending_hashtags(self, limit: Optional[int] = None) -> list[TagTrend]:
        surface = "trending_hashtags"
        limit = max(1, limit or self._config.hashtag_limit)

        with SURFACE_LATENCY.labels(surface=surface).time(), \
                tracer.start_as_current_span(surface) as span:
            now = self._clock()
            flt = CandidateFilter(
                created_after=now - timedelta(days=self._config.hashtag_window_days)
            )
            outcome = await self._fetch(
                self._candidate_requests(
                    SourceReason.POPULAR,
                    flt,
                    SortOrder.NEWEST,
                    self._config.hashtag_scan_limit,
                ),
                surface,
            )
            pool = merge_candidates(self._lists(outcome, [SourceReason.POPULAR]))
            trends = trending_tags((item for item, _ in pool), now, limit)
            span.set_attribute("hashtags.scanned", len(pool))
            span.set_attribute("hashtags.returned", len(trends))
            return trends

    async def get_tag_content(self, tag: str, limit: Optional[int] = None) -> RankedPage:
        """Newest eligible content carrying one tag, across every kind."""
        surface = "tag_content"
        tag = tag.strip().lower()
        limit = self._limit(limit, self._config.tag_content_limit)

        with SURFACE_LATENCY.labels(surface=surface).time(), \
                tracer.start_as_current_span(surface) as span:
            span.set_attribute("tag", tag)
            now = self._clock()
            outcome = await self._fetch(
                self._candidate_requests(
                    SourceReason.TAG_MATCH,
                    CandidateFilter(tags=frozenset({tag})),
                    SortOrder.NEWEST,
                    limit + 1,
                ),
                surface,
            )
            _advance(span, Stage.CANDIDATES_FETCHED)

            pool = merge_candidates(self._lists(outcome, [SourceReason.TAG_MATCH]))
            _advance(span, Stage.DEDUPLICATED)

            weights = self._weights("default")
            ranked = [
                ScoredCandidate(item, engagement_decay_score(item, now, weights), SourceReason.TAG_MATCH)
                for item in newest_first(item for item, _ in pool)
            ]
            _advance(span, Stage.SCORED)
            _advance(span, Stage.PAGINATED)

            CANDIDATES_TOTAL.labels(surface=surface).inc(len(pool))
            _advance(span, Stage.DONE)
            return RankedPage(
                surface=surface,
                items=ranked[:limit],
                page=1,
                page_size=limit,
                has_more=len(ranked) > limit,
                degraded_sources=outcome.degraded_kinds,
            )

    async def get_trending_creators(self, limit: Optional[int] = None) -> list[CreatorTrend]:
        surface = "trending_creators"
        limit = self._limit(limit, self._config.creator_limit)

        with SURFACE_LATENCY.labels(surface=surface).time(), \
                tracer.start_as_current_span(surface) as span:
            now = self._clock()
            flt = CandidateFilter(
                created_after=now - timedelta(days=self._config.creator_window_days)
            )
            outcome = await self._fetch(
                self._candidate_requests(
                    SourceReason.POPULAR,
                    flt,
                    SortOrder.NEWEST,
                    self._config.creator_scan_limit,
                ),
                surface,
            )
            items = [item for item, _ in merge_candidates(self._lists(outcome, [SourceReason.POPULAR]))]
            authors = sorted({item.author_id for item in items})

            try:
                followers = await asyncio.wait_for(
                    self._store.fetch_follower_counts(authors), self._timeout
                )
            except Exception as exc:
                # rank on recent activity alone
                logger.warning("Follower counts unavailable for trending creators: %s", exc)
                followers = {}
                span.set_attribute("creators.degraded", "followers")

            trends = trending_creators(items, followers, self._creator_weights, limit)
            span.set_attribute("creators.scanned", len(items))
            span.set_attribute("creators.returned", len(trends))
            return trends

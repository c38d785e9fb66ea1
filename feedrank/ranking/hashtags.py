"""Tag frequency and day-over-day growth over recent content."""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from feedrank.ranking.scoring import as_utc
from feedrank.ranking.types import ContentItem


@dataclass(frozen=True)
class TagTrend:
    tag: str
    count: int
    last_24h: int
    prev_24h: int
    growth_pct: int


def growth_pct(last: int, prev: int) -> int:
    if prev == 0:
        return 100 if last > 0 else 0
    # half-up rounding, negative growth included
    return math.floor((last - prev) / prev * 100 + 0.5)


def trending_tags(
    items: Iterable[ContentItem],
    now: datetime,
    limit: int = 30,
) -> list[TagTrend]:
    now = as_utc(now)
    day_ago = now - timedelta(hours=24)
    two_days_ago = now - timedelta(hours=48)

    total: Counter[str] = Counter()
    last: Counter[str] = Counter()
    prev: Counter[str] = Counter()
    for item in items:
        created = as_utc(item.created_at)
        for tag in item.tags:
            total[tag] += 1
            if created >= day_ago:
                last[tag] += 1
            elif created >= two_days_ago:
                prev[tag] += 1

    ranked = sorted(total.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
    return [
        TagTrend(
            tag=tag,
            count=count,
            last_24h=last[tag],
            prev_24h=prev[tag],
            growth_pct=growth_pct(last[tag], prev[tag]),
        )
        for tag, count in ranked
    ]

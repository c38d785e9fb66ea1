"""
Concurrent fan-out over per-kind content sources.

Every fetch runs under its own timeout. A failed or slow fetch is recorded
as a SourceUnavailable and the remaining fetches carry on; the caller
decides what to do when nothing succeeded.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Hashable

from feedrank.ranking.errors import SourceUnavailable
from feedrank.ranking.types import ContentKind
from feedrank.telemetry import SOURCE_DEGRADED_TOTAL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchRequest:
    key: Hashable
    kind: ContentKind
    call: Callable[[], Awaitable[Any]]
    label: str = "fetch"


@dataclass
class FanOutResult:
    results: dict[Hashable, Any] = field(default_factory=dict)
    failures: list[SourceUnavailable] = field(default_factory=list)
    attempted: int = 0

    @property
    def degraded_kinds(self) -> list[str]:
        return sorted({f.kind for f in self.failures})

    @property
    def all_failed(self) -> bool:
        return self.attempted > 0 and not self.results

    def get(self, key: Hashable, default: Any = None) -> Any:
        return self.results.get(key, default)


async def _guarded(request: FetchRequest, timeout: float) -> tuple[FetchRequest, Any, SourceUnavailable | None]:
    kind = request.kind.value
    try:
        value = await asyncio.wait_for(request.call(), timeout=timeout)
        return request, value, None
    except asyncio.TimeoutError:
        logger.warning(
            "Source degraded: %s/%s timed out after %.2fs", request.label, kind, timeout
        )
        return request, None, SourceUnavailable(kind, "timeout")
    except Exception as exc:
        logger.warning("Source degraded: %s/%s failed: %s", request.label, kind, exc)
        return request, None, SourceUnavailable(kind, "error", message=str(exc))


async def fan_out(requests: list[FetchRequest], timeout: float) -> FanOutResult:
    """Run every request concurrently and join the results."""
    outcome = FanOutResult(attempted=len(requests))
    if not requests:
        return outcome

    joined = await asyncio.gather(*[_guarded(r, timeout) for r in requests])
    for request, value, failure in joined:
        if failure is not None:
            SOURCE_DEGRADED_TOTAL.labels(kind=failure.kind, reason=failure.reason).inc()
            outcome.failures.append(failure)
        else:
            outcome.results[request.key] = value
    return outcome

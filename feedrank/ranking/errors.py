from typing import Optional


class RankingError(Exception):
    code: str = "ranking_error"
    status: int = 500

    def __init__(self, message: str = "", *, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message or self.__class__.__name__)
        if code:
            self.code = code
        if status:
            self.status = status


class SourceUnavailable(RankingError):
    """One content-kind fetch failed or timed out."""
    code = "source_unavailable"
    status = 503

    def __init__(self, kind: str, reason: str = "error", message: str = ""):
        super().__init__(message or f"source '{kind}' unavailable ({reason})")
        self.kind = kind
        self.reason = reason


class ProfileUnavailable(RankingError):
    code = "profile_unavailable"
    status = 503


class InvalidSeed(RankingError):
    code = "not_found"
    status = 404


class ServiceDegraded(RankingError):
    """Every content source failed for the request."""
    code = "service_degraded"
    status = 503

    def __init__(self, kinds: list[str], message: str = ""):
        super().__init__(message or f"all content sources failed: {', '.join(kinds)}")
        self.kinds = kinds

"""Data contracts for the web search pipeline."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SearchAnchor:
    """One link+title pair parsed from the provider's result listing."""

    url: str
    title: str
    position: int = 0  # document order, 0-based


@dataclass
class SearchRunStats:
    """Counters for one pipeline run, logged when it finishes."""

    query: str
    mode: str
    anchors: int = 0
    emitted: int = 0
    skipped_status: int = 0
    skipped_fetch_error: int = 0
    skipped_paywall: int = 0
    notes: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.skipped_status + self.skipped_fetch_error + self.skipped_paywall

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "mode": self.mode,
            "anchors": self.anchors,
            "emitted": self.emitted,
            "skipped": self.skipped,
            "skipped_status": self.skipped_status,
            "skipped_fetch_error": self.skipped_fetch_error,
            "skipped_paywall": self.skipped_paywall,
        }

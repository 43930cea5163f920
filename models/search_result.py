from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class SearchMode(str, Enum):
    """Result production strategy selected by the caller."""

    FAST = "fast"  # url/title straight from the listing page
    ENRICHED = "enriched"  # fetch + extract every result page


@dataclass(frozen=True)
class SearchQuery:
    query: str
    max_results: int = 5
    mode: SearchMode = SearchMode.FAST

    def __post_init__(self):
        if not self.query or not self.query.strip():
            raise ValueError("query must not be empty")
        if self.max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {self.max_results}")
        if not isinstance(self.mode, SearchMode):
            object.__setattr__(self, "mode", SearchMode(self.mode))


@dataclass(frozen=True)
class SearchResult:
    """
    One search hit.

    In fast mode only ``url`` and ``title`` are populated; the remaining fields
    keep their zero values until the page has been fetched and analyzed.
    """

    url: str
    title: str
    summary: str = ""
    reading_time: int = 0
    favicon_url: str | None = None
    is_paywall: bool = False

    @property
    def is_enriched(self) -> bool:
        return self.reading_time > 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

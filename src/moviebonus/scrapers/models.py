"""Data models for scrapers."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, Literal, TypeVar

T = TypeVar("T")

NowShowingSource = Literal["atmovies-now", "atmovies-next"]


def utcnow() -> datetime:
    """Timezone-aware current time used to stamp scrape records."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of a single page fetch.

    One is produced per fetch call and discarded after extraction. Failures
    are represented here rather than raised.
    """

    success: bool
    html: str
    status_code: int  # 0 when no HTTP response was received
    url: str  # URL as requested
    final_url: str  # URL after redirects
    fetched_at: datetime
    error: str | None = None


@dataclass
class TheaterConfig:
    """Static configuration of one scraped source (a theater chain)."""

    id: str
    name: str  # Display name, also used in prompts and search queries
    event_urls: list[str] = field(default_factory=list)  # Event/bonus pages
    now_showing_urls: list[str] = field(default_factory=list)  # Catalog pages
    enabled: bool = True
    priority: int = 100  # Lower runs first

    @property
    def all_urls(self) -> list[str]:
        """Event pages then now-showing pages, each URL once."""
        return list(dict.fromkeys([*self.event_urls, *self.now_showing_urls]))


@dataclass
class LLMParseRequest:
    """Input to the text-understanding adapter."""

    html: str  # Already-cleaned, size-bounded page text
    source_url: str
    theater_id: str
    prompt_template: str = ""


@dataclass
class ScrapedBonus:
    """
    A normalized bonus record.

    Only produced from service candidates that were not tagged outdated and
    whose confidence is at least the minimum.
    """

    movie_title: str
    theater_name: str
    week: int
    description: str
    quantity: str
    source_url: str
    scraped_at: datetime = field(default_factory=utcnow)


@dataclass
class LLMParseResponse:
    """Result of one text-understanding call."""

    bonuses: list[ScrapedBonus]
    confidence: float  # 0-1
    raw_response: str


@dataclass
class ScrapeResult(Generic[T]):
    """Per-source outcome. success is False only when nothing could be fetched."""

    source_url: str
    success: bool = False
    data: list[T] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    scraped_at: datetime = field(default_factory=utcnow)


@dataclass
class TheaterScrapeResult:
    """Aggregate result of a full theater run."""

    theaters: dict[str, ScrapeResult[ScrapedBonus]]
    all_bonuses: list[ScrapedBonus]
    errors: list[str]
    scraped_at: datetime = field(default_factory=utcnow)

    @property
    def total_bonuses(self) -> int:
        return len(self.all_bonuses)


@dataclass
class FacebookPost:
    """A post (or page text) taken from a theater's mobile Facebook page."""

    theater_id: str
    theater_name: str
    text: str
    url: str
    scraped_at: datetime = field(default_factory=utcnow)


@dataclass
class NowShowingMovie:
    """A movie listed on the external now-showing/upcoming aggregator."""

    title: str
    url: str
    release_date: str  # YYYY-MM-DD or empty when unknown
    is_rerelease: bool
    source: NowShowingSource


@dataclass
class NowShowingResult:
    now_showing: list[NowShowingMovie]
    upcoming: list[NowShowingMovie]
    errors: list[str]
    scraped_at: datetime = field(default_factory=utcnow)

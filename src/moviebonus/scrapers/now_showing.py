"""
Now-showing tracker for the atmovies.com.tw listings.

Pulls the "now showing" and "coming soon" lists, flags likely rereleases,
and compares them with the catalog to surface movies that are missing from
it. Nothing is inserted automatically.
"""

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from moviebonus.config import settings
from moviebonus.scrapers.fetcher import FetchOptions, PageFetcher
from moviebonus.scrapers.models import NowShowingMovie, NowShowingResult, NowShowingSource
from moviebonus.scrapers.pacing import IntervalPacer
from moviebonus.scrapers.rerelease import detect_rerelease
from moviebonus.utils.text import normalize

logger = logging.getLogger(__name__)

BASE_URL = "https://www.atmovies.com.tw"
NOW_URL = f"{BASE_URL}/movie/now/"
NEXT_URL = f"{BASE_URL}/movie/next/"

LISTING_SELECTORS = (
    "ul.filmList li",
    ".filmListAll li",
    ".at0 li",
    ".runtime a",
    "table a[href*='/movie/']",
    "a[href*='/movie/f']",
)
DATE_SELECTOR = ".runtime, .date, span"

_RELEASE_DATE = re.compile(r"(\d{4})[/-](\d{1,2})[/-](\d{1,2})")


def _text(tag: Tag) -> str:
    return tag.get_text(" ", strip=True)


def _parse_release_date(text: str) -> str:
    """Normalize "2026/3/7" style dates to "2026-03-07"; "" when absent."""
    m = _RELEASE_DATE.search(text)
    if not m:
        return ""
    return f"{m.group(1)}-{int(m.group(2)):02d}-{int(m.group(3)):02d}"


def parse_listing_page(html: str, source: NowShowingSource) -> list[NowShowingMovie]:
    """
    Parse an atmovies listing page into movies.

    List items and bare movie links are both understood; titles shorter
    than two characters and repeated titles are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    movies: list[NowShowingMovie] = []
    seen: set[str] = set()

    for selector in LISTING_SELECTORS:
        for el in soup.select(selector):
            if el.name == "li":
                link = el.find("a")
                if not isinstance(link, Tag):
                    continue
                date_scope: Tag = el
            else:
                link = el
                date_scope = el.parent if isinstance(el.parent, Tag) else el

            title = _text(link)
            if len(title) < 2 or title in seen:
                continue
            seen.add(title)

            href = str(link.get("href") or "")
            date_text = " ".join(_text(d) for d in date_scope.select(DATE_SELECTOR))

            movies.append(
                NowShowingMovie(
                    title=title,
                    url=urljoin(BASE_URL, href) if href else "",
                    release_date=_parse_release_date(date_text),
                    is_rerelease=detect_rerelease(title),
                    source=source,
                )
            )

    return movies


def find_missing_movies(
    scraped: list[NowShowingMovie], existing_titles: list[str]
) -> list[NowShowingMovie]:
    """
    Return scraped movies that have no counterpart among existing titles.

    Titles are compared by normalized key; an exact match or containment in
    either direction counts as present. Titles with an empty key (nothing
    but punctuation) are never reported.
    """
    existing = {key for key in (normalize(t) for t in existing_titles) if key}

    missing: list[NowShowingMovie] = []
    for movie in scraped:
        key = normalize(movie.title)
        if not key or key in existing:
            continue
        if any(key in other or other in key for other in existing):
            continue
        missing.append(movie)
    return missing


class NowShowingTracker:
    """Fetches and parses the atmovies now-showing and upcoming lists."""

    def __init__(self, fetcher: PageFetcher, *, pacer: IntervalPacer | None = None) -> None:
        self.fetcher = fetcher
        self.pacer = pacer or IntervalPacer(settings.source_delay)

    async def scrape_now_showing(self) -> list[NowShowingMovie]:
        return await self._scrape(NOW_URL, "atmovies-now")

    async def scrape_upcoming(self) -> list[NowShowingMovie]:
        return await self._scrape(NEXT_URL, "atmovies-next")

    async def run(self) -> NowShowingResult:
        """Scrape both listings. Failures are collected into errors."""
        errors: list[str] = []
        listings: dict[NowShowingSource, list[NowShowingMovie]] = {}

        for url, source in ((NOW_URL, "atmovies-now"), (NEXT_URL, "atmovies-next")):
            await self.pacer.wait()
            try:
                listings[source] = await self._scrape(url, source, errors)
            except Exception as e:
                errors.append(f"{source} scrape failed: {e}")
                logger.error(f"{source} scrape failed: {e}", exc_info=True)
                listings[source] = []

        result = NowShowingResult(
            now_showing=listings["atmovies-now"],
            upcoming=listings["atmovies-next"],
            errors=errors,
        )
        logger.info(
            f"Now-showing tracker complete: {len(result.now_showing)} now showing, "
            f"{len(result.upcoming)} upcoming, {len(errors)} errors"
        )
        return result

    async def _scrape(
        self, url: str, source: NowShowingSource, errors: list[str] | None = None
    ) -> list[NowShowingMovie]:
        fetched = await self.fetcher.fetch(url, FetchOptions())
        if not fetched.success:
            message = f"Failed to fetch {url}: {fetched.error or f'HTTP {fetched.status_code}'}"
            logger.warning(message)
            if errors is not None:
                errors.append(message)
            return []

        movies = parse_listing_page(fetched.html, source)
        logger.info(f"{source}: found {len(movies)} movies")
        return movies


async def run_now_showing_tracker() -> NowShowingResult:
    """Entry point: scrape the now-showing and upcoming lists."""
    return await NowShowingTracker(PageFetcher()).run()

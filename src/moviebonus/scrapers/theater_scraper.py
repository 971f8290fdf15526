"""
Theater bonus scraper: the per-source acquisition pipeline.

For each configured theater chain, in priority order:

1. Fetch every event page and now-showing page.
2. Extract bonus-relevant text from each page that loaded.
3. If every fetch was blocked, try a single search-engine query instead.
4. Send the combined text to the text-understanding service.
5. Drop bonuses whose own text dates them outside the recency window.

Failures are recorded per source and never stop the run.
"""

import logging
from collections.abc import Callable
from datetime import date
from urllib.parse import quote

from moviebonus.config import settings
from moviebonus.scrapers.extractor import ContentExtractor
from moviebonus.scrapers.fetcher import FetchOptions, PageFetcher
from moviebonus.scrapers.llm_parser import THEATER_BONUS_PROMPT, LLMBonusParser
from moviebonus.scrapers.models import (
    LLMParseRequest,
    ScrapedBonus,
    ScrapeResult,
    TheaterConfig,
    TheaterScrapeResult,
)
from moviebonus.scrapers.pacing import IntervalPacer
from moviebonus.scrapers.rerelease import check_date_relevance
from moviebonus.scrapers.sources import sorted_configs
from moviebonus.services.llm_client import AnthropicClient

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.google.com/search"
SEARCH_PHRASE = "入場特典"
MIN_TEXT_LENGTH = 50  # Extracted text at or below this is treated as empty
PAGE_TIMEOUT = 20.0
SEARCH_TIMEOUT = 15.0
PAGE_SEPARATOR = "\n\n"


def build_search_fallback_url(theater_name: str, year: int) -> str:
    """Search URL for a theater's entry bonuses, restricted to the last 3 months."""
    query = f"{theater_name} {SEARCH_PHRASE} {year}"
    return f"{SEARCH_URL}?q={quote(query)}&hl=zh-TW&tbs=qdr:m3"


def join_page_texts(blocks: list[str], max_length: int) -> str:
    """Join labelled page blocks, cutting each to an equal share of max_length."""
    if not blocks:
        return ""
    share = max((max_length - len(PAGE_SEPARATOR) * (len(blocks) - 1)) // len(blocks), 0)
    return PAGE_SEPARATOR.join(block[:share] for block in blocks)


class TheaterScraper:
    """Runs the fetch → extract → parse → filter pipeline for theater sources."""

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: ContentExtractor,
        parser: LLMBonusParser,
        *,
        pacer: IntervalPacer | None = None,
        recency_months: int | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """
        Args:
            fetcher: Page fetcher
            extractor: Relevant-text extractor
            parser: Text-understanding adapter
            pacer: Pacing policy applied between sources
            recency_months: Recency window for the post-parse date filter
            today: Provider of the reference date
        """
        self.fetcher = fetcher
        self.extractor = extractor
        self.parser = parser
        self.pacer = pacer or IntervalPacer(settings.source_delay)
        self.recency_months = recency_months or settings.recency_months
        self._today = today

    async def scrape_all(self, configs: list[TheaterConfig] | None = None) -> TheaterScrapeResult:
        """
        Scrape every configured theater sequentially, in priority order.

        Returns:
            Per-theater results plus the flattened bonus and error lists
        """
        ordered = sorted_configs(configs)
        logger.info(f"Theater scrape starting for {len(ordered)} theaters")

        theaters: dict[str, ScrapeResult[ScrapedBonus]] = {}
        all_bonuses: list[ScrapedBonus] = []
        all_errors: list[str] = []

        for config in ordered:
            await self.pacer.wait()
            result = await self.scrape_theater(config)
            theaters[config.id] = result
            all_bonuses.extend(result.data)
            all_errors.extend(result.errors)

        logger.info(
            f"Theater scrape complete: {len(all_bonuses)} bonuses, {len(all_errors)} errors"
        )
        return TheaterScrapeResult(theaters=theaters, all_bonuses=all_bonuses, errors=all_errors)

    async def scrape_theater(self, config: TheaterConfig) -> ScrapeResult[ScrapedBonus]:
        """Run the pipeline for one theater. Never raises."""
        urls = config.all_urls
        result: ScrapeResult[ScrapedBonus] = ScrapeResult(source_url=urls[0] if urls else "")

        if not config.enabled:
            result.errors.append(f"{config.name} is disabled")
            return result

        try:
            texts = await self._collect_texts(config, result)

            if not texts:
                result.errors.append(f"No content fetched for {config.name}")
                logger.warning(f"{config.name}: no content fetched")
                return result

            if not self.parser.is_available:
                logger.info(f"Text service not configured, skipping parse for {config.name}")
                result.success = True
                return result

            parsed = await self.parser.parse(
                LLMParseRequest(
                    html=join_page_texts(texts, settings.extract_max_chars),
                    source_url=result.source_url,
                    theater_id=config.id,
                    prompt_template=THEATER_BONUS_PROMPT,
                )
            )
            result.data = self.filter_recent(parsed.bonuses)
            result.success = True
            logger.info(
                f"{config.name}: found {len(result.data)} bonuses "
                f"({len(parsed.bonuses) - len(result.data)} dropped as outdated, "
                f"confidence: {parsed.confidence:.2f})"
            )

        except Exception as e:
            result.errors.append(f"{config.name} scrape error: {e}")
            logger.error(f"{config.name} scrape error: {e}", exc_info=True)

        return result

    def filter_recent(self, bonuses: list[ScrapedBonus]) -> list[ScrapedBonus]:
        """Drop bonuses whose description or quantity dates them as stale."""
        today = self._today()
        return [
            bonus
            for bonus in bonuses
            if check_date_relevance(
                f"{bonus.description} {bonus.quantity}", self.recency_months, today
            ).is_recent
        ]

    async def _collect_texts(
        self, config: TheaterConfig, result: ScrapeResult[ScrapedBonus]
    ) -> list[str]:
        """Fetch and extract every page, falling back to search when all are blocked."""
        texts: list[str] = []
        all_blocked = True

        for url in config.all_urls:
            logger.info(f"Fetching {config.name}: {url}")
            fetched = await self.fetcher.fetch(url, FetchOptions(timeout=PAGE_TIMEOUT))
            if not fetched.success:
                error = fetched.error or f"HTTP {fetched.status_code}"
                result.errors.append(f"Failed to fetch {url}: {error}")
                logger.warning(f"Failed to fetch {url}: {error}")
                continue

            all_blocked = False
            text = self.extractor.extract(fetched.html)
            logger.info(f"{config.name} fetched OK, text length: {len(text)}")
            if len(text) > MIN_TEXT_LENGTH:
                texts.append(f"=== {config.name} ({url}) ===\n{text}")

        if all_blocked and not texts:
            fallback = await self._search_fallback(config)
            if fallback:
                texts.append(fallback)

        return texts

    async def _search_fallback(self, config: TheaterConfig) -> str | None:
        """Single search-engine request used when the theater's own pages are blocked."""
        url = build_search_fallback_url(config.name, self._today().year)
        logger.info(f"All URLs blocked for {config.name}, trying search fallback")

        fetched = await self.fetcher.fetch(url, FetchOptions(timeout=SEARCH_TIMEOUT))
        if not fetched.success:
            logger.warning(f"{config.name} search fallback failed: {fetched.error}")
            return None

        text = self.extractor.extract(fetched.html)
        if len(text) <= MIN_TEXT_LENGTH:
            logger.info(f"{config.name} search fallback returned too little text")
            return None

        logger.info(f"{config.name} search fallback OK, text length: {len(text)}")
        return f"=== {config.name} (search fallback) ===\n{text}"


def build_theater_scraper() -> TheaterScraper:
    """Theater scraper wired with the default collaborators from settings."""
    return TheaterScraper(
        fetcher=PageFetcher(),
        extractor=ContentExtractor(),
        parser=LLMBonusParser(AnthropicClient()),
    )


async def scrape_all_theaters(configs: list[TheaterConfig] | None = None) -> TheaterScrapeResult:
    """Entry point: scrape bonuses from every configured theater."""
    return await build_theater_scraper().scrape_all(configs)

"""Scheduled job that runs the full bonus acquisition pipeline."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from moviebonus.models.catalog import CatalogMovie
from moviebonus.scrapers.facebook import FacebookScraper
from moviebonus.scrapers.fetcher import PageFetcher
from moviebonus.scrapers.llm_parser import LLMBonusParser
from moviebonus.scrapers.models import (
    NowShowingMovie,
    NowShowingResult,
    ScrapedBonus,
    TheaterScrapeResult,
    utcnow,
)
from moviebonus.scrapers.now_showing import NowShowingTracker, find_missing_movies
from moviebonus.scrapers.theater_scraper import TheaterScraper, build_theater_scraper
from moviebonus.services.llm_client import AnthropicClient
from moviebonus.services.title_matcher import mark_rereleases, merge_scraped_bonuses
from moviebonus.services.tmdb_client import TMDbClient

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""

    catalog: list[CatalogMovie] = field(default_factory=list)
    theater_bonuses: list[ScrapedBonus] = field(default_factory=list)
    facebook_bonuses: list[ScrapedBonus] = field(default_factory=list)
    now_showing: NowShowingResult | None = None
    missing_movies: list[NowShowingMovie] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    finished_at: datetime | None = None

    @property
    def all_bonuses(self) -> list[ScrapedBonus]:
        return [*self.theater_bonuses, *self.facebook_bonuses]

    @property
    def matched_movies(self) -> int:
        return sum(1 for movie in self.catalog if movie.is_verified)


async def run_scrape_pipeline(
    *,
    tmdb: TMDbClient | None = None,
    theater_scraper: TheaterScraper | None = None,
    facebook_scraper: FacebookScraper | None = None,
    tracker: NowShowingTracker | None = None,
) -> PipelineResult:
    """Fetch the catalog, scrape every source and merge the bonuses into the catalog.

    Each stage is isolated: a failing stage is logged and recorded in
    ``errors`` and the remaining stages still run.
    """
    logger.info("Starting bonus pipeline run")
    result = PipelineResult()

    tmdb = tmdb or TMDbClient()
    theater_scraper = theater_scraper or build_theater_scraper()
    facebook_scraper = facebook_scraper or FacebookScraper(
        PageFetcher(), LLMBonusParser(AnthropicClient())
    )
    tracker = tracker or NowShowingTracker(PageFetcher())

    try:
        result.catalog = await tmdb.fetch_catalog()
    except Exception as e:
        result.errors.append(f"Catalog fetch failed: {e}")
        logger.error(f"Catalog fetch failed: {e}", exc_info=True)

    try:
        theater_result: TheaterScrapeResult = await theater_scraper.scrape_all()
        result.theater_bonuses = theater_result.all_bonuses
        result.errors.extend(theater_result.errors)
    except Exception as e:
        result.errors.append(f"Theater scrape failed: {e}")
        logger.error(f"Theater scrape failed: {e}", exc_info=True)

    try:
        posts = await facebook_scraper.scrape_all()
        result.facebook_bonuses = await facebook_scraper.parse_bonuses(posts)
    except Exception as e:
        result.errors.append(f"Facebook scrape failed: {e}")
        logger.error(f"Facebook scrape failed: {e}", exc_info=True)

    try:
        result.now_showing = await tracker.run()
        result.errors.extend(result.now_showing.errors)
        result.missing_movies = find_missing_movies(
            result.now_showing.now_showing, [movie.title for movie in result.catalog]
        )
    except Exception as e:
        result.errors.append(f"Now-showing tracker failed: {e}")
        logger.error(f"Now-showing tracker failed: {e}", exc_info=True)

    result.catalog = mark_rereleases(merge_scraped_bonuses(result.catalog, result.all_bonuses))
    result.finished_at = utcnow()

    logger.info(
        f"Pipeline complete: {len(result.catalog)} catalog movies, "
        f"{len(result.all_bonuses)} bonuses ({result.matched_movies} movies matched), "
        f"{len(result.missing_movies)} missing from catalog, {len(result.errors)} errors"
    )
    return result

"""Bonus acquisition: fetching, extraction, parsing and source orchestration."""

from moviebonus.scrapers.extractor import ContentExtractor, RelevanceMatcher
from moviebonus.scrapers.facebook import FacebookScraper
from moviebonus.scrapers.fetcher import FetchOptions, PageFetcher
from moviebonus.scrapers.llm_parser import LLMBonusParser
from moviebonus.scrapers.now_showing import NowShowingTracker, run_now_showing_tracker
from moviebonus.scrapers.pacing import IntervalPacer, NoPacing
from moviebonus.scrapers.sources import THEATER_CONFIGS, get_theater_config
from moviebonus.scrapers.theater_scraper import TheaterScraper, scrape_all_theaters

__all__ = [
    "THEATER_CONFIGS",
    "get_theater_config",
    "ContentExtractor",
    "RelevanceMatcher",
    "FacebookScraper",
    "FetchOptions",
    "PageFetcher",
    "LLMBonusParser",
    "NowShowingTracker",
    "run_now_showing_tracker",
    "IntervalPacer",
    "NoPacing",
    "TheaterScraper",
    "scrape_all_theaters",
]

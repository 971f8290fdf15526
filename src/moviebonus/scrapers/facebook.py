"""Theater Facebook fan page scraper using the mobile-basic site."""

import logging

from bs4 import BeautifulSoup

from moviebonus.config import settings
from moviebonus.scrapers.fetcher import MOBILE_USER_AGENT, FetchOptions, PageFetcher
from moviebonus.scrapers.llm_parser import BONUS_EXTRACTION_PROMPT, LLMBonusParser
from moviebonus.scrapers.models import FacebookPost, LLMParseRequest, ScrapedBonus
from moviebonus.scrapers.pacing import IntervalPacer
from moviebonus.scrapers.sources import FACEBOOK_PAGES, get_theater_config
from moviebonus.utils.text import collapse_whitespace

logger = logging.getLogger(__name__)

POST_SELECTORS = (
    "article",
    'div[role="article"]',
    "#recent .bx",
    "#recent article",
    ".story_body_container",
)

MAX_POST_LENGTH = 2000
MIN_POST_LENGTH = 20
MIN_BODY_LENGTH = 100
COMBINED_THEATER_ID = "facebook-combined"
COMBINED_SOURCE_URL = "facebook.com (mbasic)"


class FacebookScraper:
    """
    Scraper for theater chains' Facebook fan pages.

    mbasic.facebook.com serves server-rendered HTML to mobile user agents,
    so posts can be read with plain httpx + BeautifulSoup.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        parser: LLMBonusParser,
        *,
        pages: dict[str, str] | None = None,
        pacer: IntervalPacer | None = None,
        max_posts: int = 3,
    ) -> None:
        self.fetcher = fetcher
        self.parser = parser
        self.pages = pages if pages is not None else FACEBOOK_PAGES
        self.pacer = pacer or IntervalPacer(settings.source_delay)
        self.max_posts = max_posts

    async def scrape_page(self, theater_id: str) -> list[FacebookPost]:
        """Fetch recent posts for one theater. Returns [] on any failure."""
        url = self.pages.get(theater_id)
        if not url:
            return []

        config = get_theater_config(theater_id)
        theater_name = config.name if config else theater_id

        try:
            logger.info(f"Fetching Facebook page for {theater_name}: {url}")
            fetched = await self.fetcher.fetch(url, FetchOptions(user_agent=MOBILE_USER_AGENT))
            if not fetched.success:
                logger.warning(f"Failed to fetch Facebook page for {theater_name}: {fetched.error}")
                return []

            texts = self.parse_posts(fetched.html)
        except Exception as e:
            logger.error(f"Facebook scrape error for {theater_name}: {e}", exc_info=True)
            return []

        posts = [
            FacebookPost(theater_id=theater_id, theater_name=theater_name, text=text, url=url)
            for text in texts
        ]
        logger.info(f"Facebook {theater_name}: got {len(posts)} posts")
        return posts

    def parse_posts(self, html: str) -> list[str]:
        """
        Extract post texts from a page.

        Uses the first selector that matches anything. When none matches,
        the whole body text becomes a single pseudo-post if long enough.
        """
        soup = BeautifulSoup(html, "html.parser")

        for selector in POST_SELECTORS:
            elements = soup.select(selector)
            if elements:
                texts = (
                    collapse_whitespace(el.get_text(separator=" "))
                    for el in elements[: self.max_posts]
                )
                return [t[:MAX_POST_LENGTH] for t in texts if len(t) > MIN_POST_LENGTH]

        root = soup.body or soup
        body_text = collapse_whitespace(root.get_text(separator=" "))
        if len(body_text) > MIN_BODY_LENGTH:
            return [body_text[:MAX_POST_LENGTH]]
        return []

    async def scrape_all(self) -> list[FacebookPost]:
        """Scrape every configured fan page, paced between pages."""
        posts: list[FacebookPost] = []
        for theater_id in self.pages:
            await self.pacer.wait()
            posts.extend(await self.scrape_page(theater_id))
        return posts

    async def parse_bonuses(self, posts: list[FacebookPost]) -> list[ScrapedBonus]:
        """Run one text-understanding call over all posts."""
        if not posts or not self.parser.is_available:
            return []

        combined = "\n\n---\n\n".join(f"[{p.theater_name}]\n{p.text}" for p in posts)
        try:
            result = await self.parser.parse(
                LLMParseRequest(
                    html=combined,
                    source_url=COMBINED_SOURCE_URL,
                    theater_id=COMBINED_THEATER_ID,
                    prompt_template=BONUS_EXTRACTION_PROMPT,
                )
            )
        except Exception as e:
            logger.error(f"Facebook bonus parse error: {e}", exc_info=True)
            return []

        logger.info(f"Facebook: parsed {len(result.bonuses)} bonuses from {len(posts)} posts")
        return result.bonuses

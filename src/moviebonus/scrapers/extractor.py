"""Bonus-relevant text extraction from theater page HTML using BeautifulSoup."""

import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup

from moviebonus.config import settings
from moviebonus.utils.text import collapse_whitespace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelevanceMatcher:
    """
    A CSS selector for elements likely to hold bonus information.

    Matchers are applied in ascending ``rank``; text found by earlier
    matchers appears first in the extracted output.
    """

    name: str
    selector: str
    rank: int = 100


DEFAULT_MATCHERS: tuple[RelevanceMatcher, ...] = (
    RelevanceMatcher("event-class", '[class*="event"]', 10),
    RelevanceMatcher("bonus-class", '[class*="bonus"]', 20),
    RelevanceMatcher("gift-class", '[class*="gift"]', 30),
    RelevanceMatcher("campaign-class", '[class*="campaign"]', 40),
    RelevanceMatcher("activity-class", '[class*="activity"]', 50),
    RelevanceMatcher("news-class", '[class*="news"]', 60),
    RelevanceMatcher("tokuten-class", '[class*="特典"]', 70),
    RelevanceMatcher("giveaway-class", '[class*="贈品"]', 80),
    RelevanceMatcher("activity-zh-class", '[class*="活動"]', 90),
    RelevanceMatcher("article", "article", 100),
    RelevanceMatcher("news-list", ".news-list", 110),
    RelevanceMatcher("event-list", ".event-list", 120),
    RelevanceMatcher("film-events", ".film-events", 130),
    RelevanceMatcher("content-area", ".content-area", 140),
    RelevanceMatcher("main", "main", 150),
    RelevanceMatcher("content-id", "#content", 160),
)


class ContentExtractor:
    """
    Strips page noise and keeps text from elements that look bonus-related.

    This is a best-effort relevance filter: missing some bonus text is
    acceptable, and irrelevant text is weeded out later by the
    text-understanding step and the recency filter.
    """

    NOISE_SELECTOR = "script, style, nav, footer, iframe, noscript, header"
    MIN_BLOCK_LENGTH = 20
    DEDUP_PREFIX_LENGTH = 100

    def __init__(
        self,
        matchers: list[RelevanceMatcher] | None = None,
        max_length: int | None = None,
    ) -> None:
        self._matchers = sorted(
            matchers if matchers is not None else DEFAULT_MATCHERS,
            key=lambda m: m.rank,
        )
        self.max_length = max_length or settings.extract_max_chars

    @property
    def matchers(self) -> list[RelevanceMatcher]:
        return list(self._matchers)

    def register(self, matcher: RelevanceMatcher) -> None:
        """Add a matcher, keeping the list ordered by rank."""
        self._matchers.append(matcher)
        self._matchers.sort(key=lambda m: m.rank)

    def extract(self, html: str) -> str:
        """
        Extract bonus-relevant text from a page.

        Args:
            html: Raw page HTML

        Returns:
            Text of matching blocks separated by blank lines, or the whole
            page's visible text when nothing matched; at most max_length chars
        """
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup.select(self.NOISE_SELECTOR):
            tag.decompose()

        blocks: list[str] = []
        seen: set[str] = set()
        for matcher in self._matchers:
            for element in soup.select(matcher.selector):
                text = collapse_whitespace(element.get_text(separator=" "))
                key = text[: self.DEDUP_PREFIX_LENGTH]
                if len(text) > self.MIN_BLOCK_LENGTH and key not in seen:
                    seen.add(key)
                    blocks.append(text)

        if blocks:
            relevant = "\n\n".join(blocks)
        else:
            root = soup.body or soup
            relevant = collapse_whitespace(root.get_text(separator=" "))
            logger.debug("No relevant blocks matched, using full page text")

        return relevant[: self.max_length]

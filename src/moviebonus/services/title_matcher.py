"""Fuzzy title matching and idempotent merging of scraped bonuses into the catalog."""

import copy
import logging

from rapidfuzz.distance import LCSseq

from moviebonus.config import settings
from moviebonus.models.catalog import Bonus, CatalogMovie, TheaterBonus
from moviebonus.scrapers.models import ScrapedBonus
from moviebonus.scrapers.rerelease import detect_rerelease
from moviebonus.utils.text import normalize, title_variants

logger = logging.getLogger(__name__)

# Theater names as they appear on pages and in service output → canonical id
THEATER_NAME_TO_ID: dict[str, str] = {
    "威秀影城": "vieshow",
    "威秀": "vieshow",
    "秀泰影城": "showtimes",
    "秀泰": "showtimes",
    "國賓影城": "ambassador",
    "國賓": "ambassador",
    "美麗華影城": "miramar",
    "美麗華": "miramar",
    "in89 豪華數位影城": "in89",
    "in89豪華數位影城": "in89",
    "in89": "in89",
}

THEATER_TICKET_URLS: dict[str, str] = {
    "vieshow": "https://www.vscinemas.com.tw/",
    "showtimes": "https://www.showtimes.com.tw/",
    "ambassador": "https://www.ambassador.com.tw/",
    "miramar": "https://www.miramarcinemas.tw/",
    "in89": "https://www.in89.com.tw/",
}

_NORMALIZED_THEATER_NAMES = {normalize(name): theater_id for name, theater_id in THEATER_NAME_TO_ID.items()}


def similarity(a: str, b: str) -> float:
    """
    Similarity between two titles in [0, 1].

    - identical strings, or identical normalized keys → 1.0
    - one key contains the other → len(shorter) / len(longer)
    - otherwise → longest common subsequence length / len(longer)

    The ratio is taken against the longer key in every case, so a short
    title that is a true substring of a much longer official title can
    score below the match threshold.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    na, nb = normalize(a), normalize(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return 1.0

    longer = max(len(na), len(nb))
    if na in nb or nb in na:
        return min(len(na), len(nb)) / longer

    return LCSseq.similarity(na, nb) / longer


def resolve_theater_id(name: str) -> str:
    """Map a theater name variant to its canonical id, or return the name itself."""
    if name in THEATER_NAME_TO_ID:
        return THEATER_NAME_TO_ID[name]
    return _NORMALIZED_THEATER_NAMES.get(normalize(name), name)


class TitleMatcher:
    """
    Matches scraped movie titles to catalog entries and merges bonuses.

    Every catalog entry is scored on its primary, English and Japanese
    titles against the scraped title. When the scraped title has a
    subtitle, its main title alone scores only when it equals a catalog title
    after normalization (1.0, ranked below an exact full-title match). The
    best score wins if it reaches the threshold.
    """

    def __init__(self, threshold: float | None = None) -> None:
        self.threshold = settings.match_threshold if threshold is None else threshold

    def find_best_match(
        self, scraped_title: str, catalog: list[CatalogMovie]
    ) -> CatalogMovie | None:
        """
        Find the catalog movie best matching a scraped title.

        Returns:
            Matched movie, or None when no candidate reaches the threshold
        """
        best_movie: CatalogMovie | None = None
        best_rank = (0.0, 1)  # (score, 1 if scored on the full title)
        main_titles = title_variants(scraped_title)[1:]

        for movie in catalog:
            for candidate in movie.title_variants:
                rank = (similarity(scraped_title, candidate), 1)
                if rank[0] < 1.0 and any(similarity(main, candidate) == 1.0 for main in main_titles):
                    rank = (1.0, 0)
                if rank > best_rank:
                    best_rank = rank
                    best_movie = movie

        best_score = best_rank[0]
        if best_movie is not None and best_score >= self.threshold:
            logger.info(f"Matched '{scraped_title}' -> '{best_movie.title}' (score: {best_score:.2f})")
            return best_movie

        logger.info(f"No match for '{scraped_title}' (best: {best_score:.2f})")
        return None

    def merge(
        self, catalog: list[CatalogMovie], scraped_bonuses: list[ScrapedBonus]
    ) -> list[CatalogMovie]:
        """
        Merge scraped bonuses into a copy of the catalog.

        A bonus is only appended when its theater group has no bonus with the
        same week and normalized description, so merging the same bonuses
        again leaves the catalog unchanged.

        Args:
            catalog: Existing catalog (not modified)
            scraped_bonuses: Bonuses from a pipeline run

        Returns:
            New catalog list with bonuses merged in
        """
        merged = copy.deepcopy(catalog)

        by_movie: dict[str, list[ScrapedBonus]] = {}
        for bonus in scraped_bonuses:
            by_movie.setdefault(bonus.movie_title, []).append(bonus)

        for movie_title, bonuses in by_movie.items():
            movie = self.find_best_match(movie_title, merged)
            if movie is None:
                continue

            by_theater: dict[str, list[ScrapedBonus]] = {}
            for bonus in bonuses:
                by_theater.setdefault(resolve_theater_id(bonus.theater_name), []).append(bonus)

            for theater_id, theater_bonuses in by_theater.items():
                group = self._theater_group(movie, theater_id, theater_bonuses[0].theater_name)
                added = self._add_new_bonuses(group, theater_bonuses)
                logger.debug(f"{movie.title} / {theater_id}: {added} new bonuses")

            movie.is_verified = True
            movie.data_source = "scraper"

        return merged

    @staticmethod
    def _theater_group(movie: CatalogMovie, theater_id: str, theater_name: str) -> TheaterBonus:
        """Return the movie's bonus group for a theater, creating it if missing."""
        for group in movie.theater_bonuses:
            if group.theater_id == theater_id:
                return group

        group = TheaterBonus(
            theater_id=theater_id,
            theater_name=theater_name or theater_id,
            bonuses=[],
            ticket_url=THEATER_TICKET_URLS.get(theater_id, ""),
        )
        movie.theater_bonuses.append(group)
        return group

    @staticmethod
    def _add_new_bonuses(group: TheaterBonus, bonuses: list[ScrapedBonus]) -> int:
        """Append bonuses whose (week, normalized description) is not present yet."""
        existing = {(b.week, normalize(b.description)) for b in group.bonuses}
        added = 0
        for bonus in bonuses:
            key = (bonus.week, normalize(bonus.description))
            if key in existing:
                continue
            existing.add(key)
            group.bonuses.append(
                Bonus(week=bonus.week, description=bonus.description, quantity=bonus.quantity)
            )
            added += 1
        return added


def find_best_match(scraped_title: str, catalog: list[CatalogMovie]) -> CatalogMovie | None:
    """Find the best catalog match using the configured threshold."""
    return TitleMatcher().find_best_match(scraped_title, catalog)


def merge_scraped_bonuses(
    catalog: list[CatalogMovie], scraped_bonuses: list[ScrapedBonus]
) -> list[CatalogMovie]:
    """Merge scraped bonuses into a copy of the catalog using the configured threshold."""
    return TitleMatcher().merge(catalog, scraped_bonuses)


def mark_rereleases(catalog: list[CatalogMovie]) -> list[CatalogMovie]:
    """Return a copy with is_rerelease set on movies whose title or synopsis says so."""
    marked = copy.deepcopy(catalog)
    for movie in marked:
        if not movie.is_rerelease and detect_rerelease(movie.title, movie.synopsis):
            movie.is_rerelease = True
    return marked

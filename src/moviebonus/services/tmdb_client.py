"""TMDb API client for the Taiwan now-playing catalog."""

import logging
from typing import Any

import httpx

from moviebonus.config import settings
from moviebonus.models.catalog import CatalogMovie

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
THEATRICAL_RELEASE = 3  # TMDb release type for a regular theatrical run
NO_SYNOPSIS = "暫無劇情簡介"


def image_url(path: str | None, size: str = "w500") -> str:
    """Full image URL for a TMDb poster/backdrop path, or '' when missing."""
    if not path:
        return ""
    return f"{IMAGE_BASE_URL}/{size}{path}"


class TMDbClient:
    """Client for The Movie Database (TMDb) API."""

    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(self, api_key: str | None = None) -> None:
        """
        Initialize TMDb client.

        Args:
            api_key: TMDb API key (uses settings if not provided)
        """
        self.api_key = api_key or settings.tmdb_api_key
        if not self.api_key:
            logger.warning("TMDb API key not configured")

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """GET a TMDb endpoint. Returns the decoded body, or None on any error."""
        if not self.api_key:
            logger.warning(f"Cannot call TMDb {path} without API key")
            return None

        query: dict[str, Any] = {"api_key": self.api_key, **(params or {})}
        try:
            async with httpx.AsyncClient(timeout=settings.scrape_timeout, verify=False) as client:
                response = await client.get(f"{self.BASE_URL}{path}", params=query)
                response.raise_for_status()
                return response.json()

        except Exception as e:
            logger.error(f"TMDb error for {path}: {e}")
            return None

    async def now_playing(self, max_pages: int = 5) -> list[dict[str, Any]]:
        """
        Fetch the movies now playing in the configured region.

        Args:
            max_pages: Upper bound on result pages to request

        Returns:
            Raw TMDb movie results across pages (empty on error)
        """
        params = {"region": settings.tmdb_region, "language": settings.tmdb_language}

        first = await self._get("/movie/now_playing", {**params, "page": 1})
        if not first:
            return []

        movies: list[dict[str, Any]] = list(first.get("results", []))
        total_pages = min(int(first.get("total_pages") or 1), max_pages)
        logger.info(f"TMDb now playing: page 1/{total_pages}, got {len(movies)} movies")

        for page in range(2, total_pages + 1):
            data = await self._get("/movie/now_playing", {**params, "page": page})
            if not data:
                break
            movies.extend(data.get("results", []))

        logger.info(f"TMDb now playing total: {len(movies)} movies")
        return movies

    async def get_release_dates(self, tmdb_id: int) -> dict[str, Any] | None:
        """
        Get the region's release dates for a movie.

        A movie with more than one theatrical release date in the region is
        back in cinemas, i.e. a rerelease.

        Returns:
            {"is_rerelease": bool, "latest_theatrical": "YYYY-MM-DD" | None,
             "certification": str}, or None if the request failed
        """
        data = await self._get(f"/movie/{tmdb_id}/release_dates")
        if data is None:
            return None

        entries: list[dict[str, Any]] = []
        for result in data.get("results", []):
            if result.get("iso_3166_1") == settings.tmdb_region:
                entries = result.get("release_dates", [])
                break

        theatrical = sorted(
            (e.get("release_date", "") for e in entries if e.get("type") == THEATRICAL_RELEASE),
            reverse=True,
        )
        certification = next((e["certification"] for e in entries if e.get("certification")), "")

        return {
            "is_rerelease": len(theatrical) > 1,
            "latest_theatrical": theatrical[0].split("T")[0] if theatrical else None,
            "certification": certification,
        }

    def to_catalog_movie(self, data: dict[str, Any]) -> CatalogMovie:
        """
        Convert a TMDb movie result into a catalog entry.

        The original title is kept as the English title unless the movie is
        Chinese-language, and as the Japanese title for Japanese movies.
        """
        original_title = data.get("original_title") or None
        language = data.get("original_language")

        return CatalogMovie(
            id=f"tmdb-{data['id']}",
            title=data.get("title") or original_title or "",
            title_en=original_title if language not in ("zh", "ja") else None,
            title_ja=original_title if language == "ja" else None,
            release_date=data.get("release_date", ""),
            synopsis=data.get("overview") or NO_SYNOPSIS,
            poster_url=image_url(data.get("poster_path")),
            data_source="tmdb",
            tmdb_id=data["id"],
            vote_average=data.get("vote_average"),
        )

    async def fetch_catalog(self, max_pages: int = 5) -> list[CatalogMovie]:
        """
        Build the catalog from now-playing results, enriched with release dates.

        Release-date lookups that fail leave the movie as converted.
        """
        catalog: list[CatalogMovie] = []
        for data in await self.now_playing(max_pages):
            if not data.get("id"):
                continue
            movie = self.to_catalog_movie(data)

            release = await self.get_release_dates(data["id"])
            if release:
                movie.is_rerelease = release["is_rerelease"]
                if release["latest_theatrical"]:
                    movie.release_date = release["latest_theatrical"]

            catalog.append(movie)

        logger.info(f"TMDb catalog built: {len(catalog)} movies")
        return catalog

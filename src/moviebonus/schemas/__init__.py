"""Pydantic schemas for API responses."""

from moviebonus.schemas.scrape import (
    BonusResponse,
    CatalogMovieResponse,
    NowShowingMovieResponse,
    NowShowingResponse,
    ScrapedBonusResponse,
    ScrapeRunResponse,
    TheaterBonusResponse,
)

__all__ = [
    "BonusResponse",
    "TheaterBonusResponse",
    "CatalogMovieResponse",
    "ScrapedBonusResponse",
    "NowShowingMovieResponse",
    "NowShowingResponse",
    "ScrapeRunResponse",
]

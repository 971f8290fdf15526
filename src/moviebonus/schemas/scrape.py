"""Pydantic schemas for pipeline results."""

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from moviebonus.tasks.scrape_job import PipelineResult


class BonusResponse(BaseModel):
    """A giveaway item in the catalog."""

    model_config = ConfigDict(from_attributes=True)

    week: int
    description: str
    quantity: str


class TheaterBonusResponse(BaseModel):
    """One theater chain's bonuses for a movie."""

    model_config = ConfigDict(from_attributes=True)

    theater_id: str
    theater_name: str
    bonuses: list[BonusResponse]
    ticket_url: str = ""


class CatalogMovieResponse(BaseModel):
    """Catalog movie with merged bonuses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    title_en: str | None = None
    title_ja: str | None = None
    release_date: str = ""
    poster_url: str = ""
    theater_bonuses: list[TheaterBonusResponse]
    is_verified: bool
    data_source: str
    is_rerelease: bool
    tmdb_id: int | None = None


class ScrapedBonusResponse(BaseModel):
    """A bonus as scraped, before merging."""

    model_config = ConfigDict(from_attributes=True)

    movie_title: str
    theater_name: str
    week: int
    description: str
    quantity: str
    source_url: str
    scraped_at: datetime


class NowShowingMovieResponse(BaseModel):
    """A movie from the now-showing or upcoming listings."""

    model_config = ConfigDict(from_attributes=True)

    title: str
    url: str
    release_date: str
    is_rerelease: bool
    source: str


class NowShowingResponse(BaseModel):
    """Now-showing tracker output."""

    model_config = ConfigDict(from_attributes=True)

    now_showing: list[NowShowingMovieResponse]
    upcoming: list[NowShowingMovieResponse]
    errors: list[str]
    scraped_at: datetime


class ScrapeRunResponse(BaseModel):
    """Summary of a pipeline run returned by the trigger endpoint."""

    status: str
    total_bonuses: int
    matched_movies: int
    bonuses: list[ScrapedBonusResponse]
    missing_movies: list[NowShowingMovieResponse]
    catalog: list[CatalogMovieResponse]
    errors: list[str]
    started_at: datetime
    finished_at: datetime | None = None

    @classmethod
    def from_pipeline(cls, result: "PipelineResult") -> "ScrapeRunResponse":
        return cls.model_validate(
            {
                "status": "partial" if result.errors else "ok",
                "total_bonuses": len(result.all_bonuses),
                "matched_movies": result.matched_movies,
                "bonuses": result.all_bonuses,
                "missing_movies": result.missing_movies,
                "catalog": result.catalog,
                "errors": result.errors,
                "started_at": result.started_at,
                "finished_at": result.finished_at,
            },
            from_attributes=True,
        )

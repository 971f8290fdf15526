"""Tests for the pipeline job that ties all stages together."""

from unittest.mock import AsyncMock, MagicMock

from moviebonus.models.catalog import CatalogMovie
from moviebonus.scrapers.models import (
    NowShowingMovie,
    NowShowingResult,
    ScrapedBonus,
    ScrapeResult,
    TheaterScrapeResult,
)
from moviebonus.tasks.scrape_job import run_scrape_pipeline


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_bonus(movie_title: str = "鬼滅之刃", theater_name: str = "威秀影城", description: str = "限定海報") -> ScrapedBonus:
    return ScrapedBonus(
        movie_title=movie_title,
        theater_name=theater_name,
        week=1,
        description=description,
        quantity="數量有限",
        source_url="https://vieshow.test/events",
    )


def make_now_showing(title: str) -> NowShowingMovie:
    return NowShowingMovie(title=title, url="", release_date="", is_rerelease=False, source="atmovies-now")


def make_collaborators(
    catalog: list[CatalogMovie] | None = None,
    theater_bonuses: list[ScrapedBonus] | None = None,
    facebook_bonuses: list[ScrapedBonus] | None = None,
    now_showing: list[NowShowingMovie] | None = None,
) -> dict:
    tmdb = MagicMock()
    tmdb.fetch_catalog = AsyncMock(return_value=catalog or [])

    theater_bonuses = theater_bonuses or []
    theater_scraper = MagicMock()
    theater_scraper.scrape_all = AsyncMock(
        return_value=TheaterScrapeResult(
            theaters={"vieshow": ScrapeResult(source_url="https://vieshow.test/events", success=True, data=theater_bonuses)},
            all_bonuses=theater_bonuses,
            errors=[],
        )
    )

    facebook_scraper = MagicMock()
    facebook_scraper.scrape_all = AsyncMock(return_value=[])
    facebook_scraper.parse_bonuses = AsyncMock(return_value=facebook_bonuses or [])

    tracker = MagicMock()
    tracker.run = AsyncMock(
        return_value=NowShowingResult(now_showing=now_showing or [], upcoming=[], errors=[])
    )

    return {
        "tmdb": tmdb,
        "theater_scraper": theater_scraper,
        "facebook_scraper": facebook_scraper,
        "tracker": tracker,
    }


# ---------------------------------------------------------------------------
# run_scrape_pipeline
# ---------------------------------------------------------------------------


class TestRunScrapePipeline:
    async def test_merges_bonuses_from_all_sources(self) -> None:
        collaborators = make_collaborators(
            catalog=[CatalogMovie(id="tmdb-1", title="鬼滅之刃")],
            theater_bonuses=[make_bonus()],
            facebook_bonuses=[make_bonus(theater_name="秀泰影城", description="角色色紙")],
        )

        result = await run_scrape_pipeline(**collaborators)

        assert len(result.all_bonuses) == 2
        assert result.matched_movies == 1
        groups = result.catalog[0].theater_bonuses
        assert [g.theater_id for g in groups] == ["vieshow", "showtimes"]
        assert result.errors == []
        assert result.finished_at is not None

    async def test_reports_movies_missing_from_catalog(self) -> None:
        collaborators = make_collaborators(
            catalog=[CatalogMovie(id="tmdb-1", title="沙丘")],
            now_showing=[make_now_showing("沙丘"), make_now_showing("葬送的芙莉蓮")],
        )

        result = await run_scrape_pipeline(**collaborators)

        assert [m.title for m in result.missing_movies] == ["葬送的芙莉蓮"]

    async def test_marks_rereleases(self) -> None:
        collaborators = make_collaborators(catalog=[CatalogMovie(id="tmdb-2", title="鐵達尼號 4K數位修復版")])

        result = await run_scrape_pipeline(**collaborators)

        assert result.catalog[0].is_rerelease is True

    async def test_failing_stage_does_not_stop_the_rest(self) -> None:
        collaborators = make_collaborators(theater_bonuses=[make_bonus()])
        collaborators["tmdb"].fetch_catalog = AsyncMock(side_effect=RuntimeError("TMDb down"))
        collaborators["facebook_scraper"].scrape_all = AsyncMock(side_effect=RuntimeError("blocked"))

        result = await run_scrape_pipeline(**collaborators)

        assert result.catalog == []
        assert len(result.theater_bonuses) == 1
        assert result.errors == ["Catalog fetch failed: TMDb down", "Facebook scrape failed: blocked"]
        collaborators["tracker"].run.assert_awaited_once()

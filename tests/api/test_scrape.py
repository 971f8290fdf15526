"""Tests for the pipeline trigger endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from moviebonus.config import settings
from moviebonus.models.catalog import Bonus, CatalogMovie, TheaterBonus
from moviebonus.scrapers.models import NowShowingMovie, NowShowingResult, ScrapedBonus
from moviebonus.tasks.scrape_job import PipelineResult


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_pipeline_result(errors: list[str] | None = None) -> PipelineResult:
    bonus = ScrapedBonus(
        movie_title="鬼滅之刃",
        theater_name="威秀影城",
        week=1,
        description="限定海報",
        quantity="每廳限量100份",
        source_url="https://www.vscinemas.com.tw/vsweb/film/events.aspx",
    )
    movie = CatalogMovie(
        id="tmdb-1",
        title="鬼滅之刃",
        theater_bonuses=[
            TheaterBonus(
                theater_id="vieshow",
                theater_name="威秀影城",
                bonuses=[Bonus(week=1, description="限定海報", quantity="每廳限量100份")],
                ticket_url="https://www.vscinemas.com.tw/",
            )
        ],
        is_verified=True,
        data_source="scraper",
    )
    missing = NowShowingMovie(
        title="葬送的芙莉蓮",
        url="https://www.atmovies.com.tw/movie/ffri00001/",
        release_date="2026-05-01",
        is_rerelease=False,
        source="atmovies-now",
    )
    return PipelineResult(
        catalog=[movie],
        theater_bonuses=[bonus],
        missing_movies=[missing],
        errors=errors or [],
    )


async def get(app: FastAPI, url: str, **kwargs):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.get(url, **kwargs)


@pytest.fixture
def cron_secret():
    with patch.object(settings, "cron_secret", "s3cret"):
        yield "s3cret"


@pytest.fixture
def mock_pipeline():
    with patch(
        "moviebonus.api.routes.scrape.run_scrape_pipeline",
        new=AsyncMock(return_value=make_pipeline_result()),
    ) as mock:
        yield mock


# ---------------------------------------------------------------------------
# GET /api/scrape
# ---------------------------------------------------------------------------


class TestTriggerScrape:
    async def test_returns_pipeline_summary(self, test_app: FastAPI, mock_pipeline: AsyncMock) -> None:
        response = await get(test_app, "/api/scrape")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["total_bonuses"] == 1
        assert data["matched_movies"] == 1
        assert data["bonuses"][0]["description"] == "限定海報"
        assert data["catalog"][0]["theater_bonuses"][0]["theater_id"] == "vieshow"
        assert data["missing_movies"][0]["title"] == "葬送的芙莉蓮"
        mock_pipeline.assert_awaited_once()

    async def test_partial_status_when_errors(self, test_app: FastAPI) -> None:
        result = make_pipeline_result(errors=["No content fetched for 國賓影城"])
        with patch("moviebonus.api.routes.scrape.run_scrape_pipeline", new=AsyncMock(return_value=result)):
            response = await get(test_app, "/api/scrape")

        assert response.status_code == 200
        assert response.json()["status"] == "partial"
        assert response.json()["errors"] == ["No content fetched for 國賓影城"]

    async def test_rejects_missing_secret(
        self, test_app: FastAPI, cron_secret: str, mock_pipeline: AsyncMock
    ) -> None:
        response = await get(test_app, "/api/scrape")

        assert response.status_code == 401
        mock_pipeline.assert_not_awaited()

    async def test_rejects_wrong_secret(
        self, test_app: FastAPI, cron_secret: str, mock_pipeline: AsyncMock
    ) -> None:
        response = await get(test_app, "/api/scrape", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_accepts_bearer_header(
        self, test_app: FastAPI, cron_secret: str, mock_pipeline: AsyncMock
    ) -> None:
        response = await get(test_app, "/api/scrape", headers={"Authorization": f"Bearer {cron_secret}"})
        assert response.status_code == 200

    async def test_accepts_query_parameter(
        self, test_app: FastAPI, cron_secret: str, mock_pipeline: AsyncMock
    ) -> None:
        response = await get(test_app, "/api/scrape", params={"secret": cron_secret})
        assert response.status_code == 200


# ---------------------------------------------------------------------------
# GET /api/now-showing
# ---------------------------------------------------------------------------


class TestNowShowing:
    async def test_returns_listings(self, test_app: FastAPI) -> None:
        result = NowShowingResult(
            now_showing=[
                NowShowingMovie(
                    title="鐵達尼號 4K數位修復版",
                    url="https://www.atmovies.com.tw/movie/ftit99999/",
                    release_date="",
                    is_rerelease=True,
                    source="atmovies-now",
                )
            ],
            upcoming=[],
            errors=["Failed to fetch https://www.atmovies.com.tw/movie/next/: HTTP 500"],
        )
        with patch(
            "moviebonus.api.routes.scrape.run_now_showing_tracker", new=AsyncMock(return_value=result)
        ):
            response = await get(test_app, "/api/now-showing")

        assert response.status_code == 200
        data = response.json()
        assert data["now_showing"][0]["is_rerelease"] is True
        assert data["upcoming"] == []
        assert len(data["errors"]) == 1

    async def test_requires_secret(self, test_app: FastAPI, cron_secret: str) -> None:
        response = await get(test_app, "/api/now-showing")
        assert response.status_code == 401

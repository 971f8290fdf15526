"""Pipeline trigger endpoints, called by the scheduler host or by hand."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from moviebonus.config import settings
from moviebonus.scrapers.now_showing import run_now_showing_tracker
from moviebonus.schemas import NowShowingResponse, ScrapeRunResponse
from moviebonus.tasks.scrape_job import run_scrape_pipeline

logger = logging.getLogger(__name__)
router = APIRouter()


def require_cron_secret(request: Request) -> None:
    """
    Reject the request unless it carries the configured secret.

    The secret is accepted as ``Authorization: Bearer <secret>`` or as the
    ``secret`` query parameter. With no secret configured the check is off.
    """
    secret = settings.cron_secret
    if not secret:
        return

    if request.headers.get("authorization") == f"Bearer {secret}":
        return
    if request.query_params.get("secret") == secret:
        return

    logger.warning(f"Unauthorized trigger request from {request.client.host if request.client else 'unknown'}")
    raise HTTPException(status_code=401, detail="Unauthorized")


@router.get(
    "/scrape",
    response_model=ScrapeRunResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def trigger_scrape() -> ScrapeRunResponse:
    """
    Run the full pipeline and return its results.

    This endpoint:
    1. Fetches the now-playing catalog from TMDb
    2. Scrapes theater sites and Facebook pages for bonuses
    3. Tracks the now-showing listings
    4. Merges bonuses into the catalog and flags rereleases

    Note: runs synchronously and may take a minute or more.
    """
    result = await run_scrape_pipeline()
    return ScrapeRunResponse.from_pipeline(result)


@router.get(
    "/now-showing",
    response_model=NowShowingResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def now_showing() -> NowShowingResponse:
    """Scrape the now-showing and upcoming listings only."""
    result = await run_now_showing_tracker()
    return NowShowingResponse.model_validate(result, from_attributes=True)

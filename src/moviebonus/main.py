"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI

from moviebonus.api.routes import health, scrape
from moviebonus.config import settings
from moviebonus.tasks.scrape_job import run_scrape_pipeline

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: configure and start the scheduler
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_scrape_pipeline,
        trigger=CronTrigger(hour=settings.scrape_cron_hour, minute=0),
        id="daily_bonus_scrape",
        name="Daily bonus pipeline run",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started, daily pipeline run registered for {settings.scrape_cron_hour:02d}:00")

    yield

    # Shutdown: stop the scheduler gracefully
    scheduler.shutdown(wait=False)
    logger.info("Scheduler shut down")


# Create FastAPI app
app = FastAPI(
    title="MovieBonus API",
    description="Cinema entry-bonus aggregator for Taiwan theater chains",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(scrape.router, prefix="/api", tags=["scrape"])

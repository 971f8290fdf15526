"""Health check endpoint."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """
    Liveness probe for the API process and its scheduler.

    Open to everyone: unlike the trigger endpoints it does not check the
    cron secret and never starts a pipeline run.
    """
    return {"status": "ok"}

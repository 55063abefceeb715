"""Scheduler webhook endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from neriah.api.auth.dependencies import CronAuth
from neriah.api.dependencies import ScheduledSyncDep
from neriah.schemas.sync import ErrorResponse, SweepResponse

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = structlog.get_logger(__name__)


@router.post(
    "/cron",
    response_model=SweepResponse,
    response_model_by_alias=True,
    dependencies=[CronAuth],
    responses={401: {"model": ErrorResponse, "description": "Invalid cron secret"}},
)
async def cron_sweep(sweeper: ScheduledSyncDep) -> SweepResponse:
    """Run the scheduled sync for every eligible user.

    Individual user failures are counted, never propagated.
    """
    report = await sweeper.run_sweep()
    await logger.ainfo(
        "cron_sweep_finished",
        users_processed=report.users_processed,
        successful=report.successful,
        failed=report.failed,
        skipped=report.skipped,
    )
    return SweepResponse(
        users_processed=report.users_processed,
        successful=report.successful,
        failed=report.failed,
        skipped=report.skipped,
        total_items_extracted=report.total_items_extracted,
    )

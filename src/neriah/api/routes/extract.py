"""User-triggered extraction endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from neriah.api.auth.dependencies import CurrentUser
from neriah.api.dependencies import SyncServiceDep
from neriah.schemas.sync import ErrorResponse, SyncTriggerResponse
from neriah.services.sync_service import SyncResult

router = APIRouter(prefix="/extract", tags=["extract"])
logger = structlog.get_logger(__name__)

_ERRORS: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse, "description": "User is not eligible for this sync"},
    401: {"model": ErrorResponse, "description": "Missing or invalid token"},
    409: {"model": ErrorResponse, "description": "A sync is already running"},
}


def _to_response(result: SyncResult) -> SyncTriggerResponse:
    return SyncTriggerResponse(
        success=True,
        message=result.message,
        emails_fetched=result.emails_fetched,
        emails_processed=result.emails_processed,
        items_created=result.items_created,
    )


@router.post(
    "/initial",
    response_model=SyncTriggerResponse,
    response_model_by_alias=True,
    responses=_ERRORS,
)
async def initial_extraction(user: CurrentUser, service: SyncServiceDep) -> SyncTriggerResponse:
    """Run the first extraction after the mailbox is connected."""
    await logger.ainfo("initial_extraction_requested", user_id=str(user.id))
    return _to_response(await service.run_initial(user.id))


@router.post(
    "/sync",
    response_model=SyncTriggerResponse,
    response_model_by_alias=True,
    responses=_ERRORS,
)
async def manual_sync(user: CurrentUser, service: SyncServiceDep) -> SyncTriggerResponse:
    """Extract items from mail received since the last sync."""
    await logger.ainfo("manual_sync_requested", user_id=str(user.id))
    return _to_response(await service.run_manual(user.id))

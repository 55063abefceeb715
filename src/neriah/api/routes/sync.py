"""Sync history, settings and account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from neriah.api.auth.dependencies import CurrentUser
from neriah.api.database import SessionDep
from neriah.schemas.sync import (
    PushSubscriptionCreate,
    SyncRunResponse,
    SyncSettingsUpdate,
    SyncStatusResponse,
)
from neriah.services.account_service import AccountService

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get("/runs", response_model=list[SyncRunResponse])
async def list_runs(
    user: CurrentUser,
    session: SessionDep,
    limit: int = Query(20, ge=1, le=100, description="Maximum runs to return"),
) -> list[SyncRunResponse]:
    """Most recent sync runs, newest first."""
    return await AccountService(session).list_runs(user.id, limit=limit)


@router.get("/status", response_model=SyncStatusResponse)
async def get_status(user: CurrentUser, session: SessionDep) -> SyncStatusResponse:
    """Sync state of the user's profile."""
    return await AccountService(session).get_status(user.id)


@router.patch("/settings", response_model=SyncStatusResponse)
async def update_settings(
    body: SyncSettingsUpdate,
    user: CurrentUser,
    session: SessionDep,
) -> SyncStatusResponse:
    """Enable or disable the scheduled sync."""
    return await AccountService(session).set_sync_enabled(user.id, body.sync_enabled)


@router.post("/push-subscriptions", status_code=status.HTTP_204_NO_CONTENT)
async def register_push_subscription(
    body: PushSubscriptionCreate,
    user: CurrentUser,
    session: SessionDep,
) -> None:
    """Register a browser push subscription."""
    await AccountService(session).register_push_subscription(
        user.id, body.endpoint, body.keys.p256dh, body.keys.auth
    )


@router.delete("/data")
async def delete_all_data(user: CurrentUser, session: SessionDep) -> dict[str, int]:
    """Delete the user's items, run history and push subscriptions."""
    return await AccountService(session).delete_all_data(user.id)

"""Item API endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from neriah.api.auth.dependencies import CurrentUser
from neriah.api.database import SessionDep
from neriah.schemas.item import (
    FeedbackRequest,
    ItemCategory,
    ItemListResponse,
    ItemResponse,
    ItemStatsResponse,
    ItemStatus,
    SnoozeRequest,
)
from neriah.services.item_service import ItemService

router = APIRouter(prefix="/items", tags=["items"])


@router.get("", response_model=ItemListResponse)
async def list_items(
    user: CurrentUser,
    session: SessionDep,
    status_filter: ItemStatus | None = Query(None, alias="status", description="Filter by status"),
    category: ItemCategory | None = Query(None, description="Filter by category"),
    limit: int = Query(50, ge=1, le=200, description="Maximum results to return"),
    offset: int = Query(0, ge=0, description="Number of results to skip"),
) -> ItemListResponse:
    """List items for the authenticated user, newest email first.

    Deleted items are hidden unless ``status=deleted`` is requested.
    """
    return await ItemService(session).list_items(
        user.id, status=status_filter, category=category, limit=limit, offset=offset
    )


@router.get("/stats", response_model=ItemStatsResponse)
async def get_item_stats(user: CurrentUser, session: SessionDep) -> ItemStatsResponse:
    """Item counts per status."""
    return await ItemService(session).get_stats(user.id)


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: UUID, user: CurrentUser, session: SessionDep) -> ItemResponse:
    """Get one item."""
    return await ItemService(session).get_item(item_id, user.id)


@router.post("/{item_id}/complete", response_model=ItemResponse)
async def complete_item(item_id: UUID, user: CurrentUser, session: SessionDep) -> ItemResponse:
    """Mark an item as completed."""
    return await ItemService(session).complete_item(item_id, user.id)


@router.post("/{item_id}/snooze", response_model=ItemResponse)
async def snooze_item(
    item_id: UUID,
    body: SnoozeRequest,
    user: CurrentUser,
    session: SessionDep,
) -> ItemResponse:
    """Hide an item until the given time."""
    return await ItemService(session).snooze_item(item_id, user.id, body.until)


@router.post("/{item_id}/restore", response_model=ItemResponse)
async def restore_item(item_id: UUID, user: CurrentUser, session: SessionDep) -> ItemResponse:
    """Move an item back to pending."""
    return await ItemService(session).restore_item(item_id, user.id)


@router.post("/{item_id}/feedback", response_model=ItemResponse)
async def submit_feedback(
    item_id: UUID,
    body: FeedbackRequest,
    user: CurrentUser,
    session: SessionDep,
) -> ItemResponse:
    """Record whether the extraction was useful."""
    return await ItemService(session).submit_feedback(
        item_id, user.id, body.feedback, body.comment
    )


@router.delete("/{item_id}", response_model=ItemResponse)
async def delete_item(item_id: UUID, user: CurrentUser, session: SessionDep) -> ItemResponse:
    """Soft-delete an item."""
    return await ItemService(session).delete_item(item_id, user.id)

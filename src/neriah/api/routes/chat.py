"""Chat endpoints answering dashboard questions."""

from __future__ import annotations

from fastapi import APIRouter

from neriah.api.auth.dependencies import CurrentUser
from neriah.api.database import SessionDep
from neriah.schemas.chat import (
    ChatCalculateRequest,
    ChatItemsResponse,
    ChatQueryRequest,
    ChatSpendingResponse,
)
from neriah.services.chat_query_service import ChatQueryService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/query", response_model=ChatItemsResponse)
async def query_items(
    body: ChatQueryRequest, user: CurrentUser, session: SessionDep
) -> ChatItemsResponse:
    """Find pending items matching a free-text question."""
    return await ChatQueryService(session).query_items(user.id, body.text)


@router.post("/calculate", response_model=ChatSpendingResponse)
async def calculate_spending(
    body: ChatCalculateRequest, user: CurrentUser, session: SessionDep
) -> ChatSpendingResponse:
    """Total pending receipts matching a free-text question.

    Dates default to the last 30 days. ``groupBy`` adds a breakdown by
    category, vendor or month.
    """
    return await ChatQueryService(session).calculate_spending(
        user.id, body.text, group_by=body.group_by
    )

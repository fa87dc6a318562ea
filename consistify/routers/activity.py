# consistify/routers/activity.py
from fastapi import APIRouter, Depends, Query
from typing import List

from consistify.core.auth import get_current_user
from consistify.core.deps import get_store
from consistify.schemas.activity import ActivityResponse
from consistify.services.activity import FEED_LIMIT, list_feed

router = APIRouter(prefix="/activity", tags=["activity"])


@router.get("/feed", response_model=List[ActivityResponse])
async def get_feed(
    limit: int = Query(FEED_LIMIT, ge=1, le=200),
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    """Newest public completion events."""
    return await list_feed(store, limit)

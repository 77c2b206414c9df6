# backend/orderflow/api/history.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.core.database import get_db
from orderflow.repositories.history_repository import HistoryRepository
from orderflow.schemas.procurement import ActivityResponse

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("", response_model=list[ActivityResponse])
async def list_activity(
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """Customer order status changes and material purchase order events, newest first."""
    feed = await HistoryRepository(db).activity_feed(limit=limit)
    return [ActivityResponse(**item) for item in feed]

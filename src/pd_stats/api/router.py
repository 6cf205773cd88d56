# src/pd_stats/api/router.py
"""Stats REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.database import get_db_session
from src.pd_common.response import ApiResponse, ok
from src.pd_stats.application.service import StatsService

router = APIRouter(prefix="/stats", tags=["stats"])
_service = StatsService()


@router.get("", response_model=ApiResponse)
async def get_stats(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_stats(db)
    return ok(result, getattr(request.state, "request_id", None))

# src/pd_order/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.database import get_db_session
from src.pd_common.response import ApiResponse, ok
from src.pd_order.application.schemas import CreateOrderRequest, UpdateOrderRequest
from src.pd_order.application.service import OrderApplicationService

router = APIRouter(prefix="/orders", tags=["orders"])

_service = OrderApplicationService()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def create_order(
    body: CreateOrderRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_order(db, body)
    return ok(result.model_dump(), _request_id(request))


@router.get("", response_model=ApiResponse)
async def list_orders(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    user_id: str | None = Query(None, description="Only this user's orders"),
    limit: int = Query(10, ge=1, le=100, description="Items to return, newest first"),
) -> ApiResponse:
    items = await _service.list_orders(db, user_id, limit)
    return ok([o.model_dump() for o in items], _request_id(request))


@router.get("/{order_id}", response_model=ApiResponse)
async def get_order(
    order_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_order(db, order_id)
    return ok(result.model_dump(), _request_id(request))


@router.put("/{order_id}", response_model=ApiResponse)
async def update_order(
    order_id: str,
    body: UpdateOrderRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.update_order(db, order_id, body)
    return ok(result.model_dump(), _request_id(request))


@router.post("/{order_id}/cancel", response_model=ApiResponse)
async def cancel_order(
    order_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.cancel_order(db, order_id)
    return ok(result.model_dump(), _request_id(request))

"""pd_payment REST endpoints.

POST /payment         : settle a pending order (optional discount code)
GET  /payment/records : payment records, newest first, by order and/or user
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.database import get_db_session
from src.pd_common.response import ApiResponse, ok
from src.pd_payment.application.schemas import SettlePaymentRequest
from src.pd_payment.application.service import SettlementService

router = APIRouter(prefix="/payment", tags=["payment"])

_service = SettlementService()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("", response_model=ApiResponse)
async def settle_payment(
    body: SettlePaymentRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.settle(db, body)
    return ok(result.model_dump(), _request_id(request))


@router.get("/records", response_model=ApiResponse)
async def list_payment_records(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    order_id: str | None = Query(None),
    user_id: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    items = await _service.list_records(db, order_id, user_id, limit)
    return ok([r.model_dump() for r in items], _request_id(request))

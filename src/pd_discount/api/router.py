"""pd_discount REST endpoints.

POST  /discounts                      : create a code (status=active, usage_count=0)
GET   /discounts                      : newest first, bounded by limit
GET   /discounts/{discount_id}        : single code
POST  /discounts/validate             : preview the discount for an amount (read-only)
PATCH /discounts/{discount_id}/status : move a code to active/used/expired/disabled
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.database import get_db_session
from src.pd_common.response import ApiResponse, ok
from src.pd_discount.application.schemas import (
    CreateDiscountRequest,
    UpdateDiscountStatusRequest,
    ValidateDiscountRequest,
)
from src.pd_discount.application.service import DiscountApplicationService

router = APIRouter(prefix="/discounts", tags=["discounts"])

_service = DiscountApplicationService()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def create_discount(
    body: CreateDiscountRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_discount(db, body)
    return ok(result.model_dump(), _request_id(request))


@router.get("", response_model=ApiResponse)
async def list_discounts(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    items = await _service.list_discounts(db, limit)
    return ok([d.model_dump() for d in items], _request_id(request))


@router.post("/validate", response_model=ApiResponse)
async def validate_discount(
    body: ValidateDiscountRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.preview(db, body.code, body.amount)
    return ok(result.model_dump(), _request_id(request))


@router.get("/{discount_id}", response_model=ApiResponse)
async def get_discount(
    discount_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_discount(db, discount_id)
    return ok(result.model_dump(), _request_id(request))


@router.patch("/{discount_id}/status", response_model=ApiResponse)
async def update_discount_status(
    discount_id: str,
    body: UpdateDiscountStatusRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.set_status(db, discount_id, body.status)
    return ok(result.model_dump(), _request_id(request))

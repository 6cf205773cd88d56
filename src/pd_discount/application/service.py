"""DiscountApplicationService: thin composition layer.

create / set_status commit their own transaction; lookups and the
validate-only preview are read-only and never touch usage_count.
"""

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.pd_common.datetime_utils import utc_now
from src.pd_common.enums import DiscountStatus
from src.pd_common.errors import (
    DiscountCodeExistsError,
    DiscountNotFoundError,
    DiscountRejectedError,
    InternalError,
    RejectionReason,
)
from src.pd_common.id_generator import DISCOUNT_PREFIX, generate_id
from src.pd_discount.application.schemas import (
    CreateDiscountRequest,
    DiscountPreviewResponse,
    DiscountResponse,
)
from src.pd_discount.domain.models import Discount
from src.pd_discount.domain.repository import DiscountRepositoryProtocol
from src.pd_discount.domain.validator import (
    DiscountValidation,
    check_eligibility,
    compute_breakdown,
)
from src.pd_discount.infrastructure.persistence import DiscountRepository

logger = logging.getLogger("pd.discount")


def require_redeemable(validation: DiscountValidation, code: str) -> Discount:
    """Return the accepted discount, or raise the AppError matching the rejection."""
    if validation.valid and validation.discount is not None:
        return validation.discount
    if validation.reason == RejectionReason.NOT_FOUND:
        raise DiscountNotFoundError(code)
    if validation.reason is None:
        raise InternalError(f"Validation of discount code {code} has no outcome")
    raise DiscountRejectedError(validation.reason, validation.message)


class DiscountApplicationService:
    def __init__(self, repo: DiscountRepositoryProtocol | None = None) -> None:
        self._repo: DiscountRepositoryProtocol = repo or DiscountRepository()

    async def create_discount(
        self, db: AsyncSession, req: CreateDiscountRequest
    ) -> DiscountResponse:
        if await self._repo.get_by_code(req.code, db) is not None:
            raise DiscountCodeExistsError(req.code)

        discount = Discount(
            id=generate_id(DISCOUNT_PREFIX),
            code=req.code,
            balance=req.balance,
            is_full_discount=req.is_full_discount,
            status=DiscountStatus.ACTIVE.value,
            description=req.description,
            usage_count=0,
            max_usage=req.max_usage,
            min_amount=req.min_amount,
            created_at=utc_now(),
        )
        try:
            saved = await self._repo.save(discount, db)
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create of the same code
            await db.rollback()
            raise DiscountCodeExistsError(req.code) from None
        except Exception:
            await db.rollback()
            raise
        logger.info("Created discount %s (%s)", saved.id, saved.code)
        return DiscountResponse.from_domain(saved)

    async def get_discount(self, db: AsyncSession, discount_id: str) -> DiscountResponse:
        discount = await self._repo.get_by_id(discount_id, db)
        if discount is None:
            raise DiscountNotFoundError(discount_id)
        return DiscountResponse.from_domain(discount)

    async def list_discounts(self, db: AsyncSession, limit: int) -> list[DiscountResponse]:
        discounts = await self._repo.list_recent(limit, db)
        return [DiscountResponse.from_domain(d) for d in discounts]

    async def validate_code(
        self, db: AsyncSession, code: str, order_amount: Decimal
    ) -> DiscountValidation:
        """Look the code up and check eligibility. Read-only."""
        discount = await self._repo.get_by_code(code, db)
        return check_eligibility(discount, code, order_amount)

    async def preview(
        self, db: AsyncSession, code: str, amount: Decimal
    ) -> DiscountPreviewResponse:
        validation = await self.validate_code(db, code, amount)
        discount = require_redeemable(validation, code)
        breakdown = compute_breakdown(discount, amount)
        return DiscountPreviewResponse.build(discount, breakdown)

    async def set_status(
        self, db: AsyncSession, discount_id: str, status: str
    ) -> DiscountResponse:
        try:
            updated = await self._repo.update_status(discount_id, status, db)
            if updated is None:
                raise DiscountNotFoundError(discount_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Discount %s status -> %s", discount_id, status)
        return DiscountResponse.from_domain(updated)

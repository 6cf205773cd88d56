"""SimulatedGateway: stand-in for a real payment processor.

Every charge waits a fixed latency, then succeeds with a configurable
probability (95% by default). Zero-amount charges (fully discounted
orders) still go through the gateway so the flow stays uniform.
"""

import asyncio
import logging
import random
from decimal import Decimal

from config.settings import settings
from src.pd_common.id_generator import CHARGE_PREFIX, generate_id
from src.pd_payment.domain.models import GatewayCharge

logger = logging.getLogger("pd.gateway")


class SimulatedGateway:
    def __init__(
        self,
        latency_seconds: float = settings.GATEWAY_LATENCY_SECONDS,
        success_rate: float = settings.GATEWAY_SUCCESS_RATE,
        rng: random.Random | None = None,
    ) -> None:
        if not (0.0 <= success_rate <= 1.0):
            raise ValueError(f"success_rate must be within [0, 1], got {success_rate}")
        self._latency_seconds = latency_seconds
        self._success_rate = success_rate
        self._rng = rng or random.Random()

    async def charge(self, payment_method: str, amount: Decimal) -> GatewayCharge:
        await asyncio.sleep(self._latency_seconds)
        succeeded = self._rng.random() < self._success_rate
        charge = GatewayCharge(
            charge_id=generate_id(CHARGE_PREFIX),
            succeeded=succeeded,
            amount=amount,
            payment_method=payment_method,
        )
        logger.info(
            "Simulated charge %s: method=%s amount=%s succeeded=%s",
            charge.charge_id,
            payment_method,
            amount,
            succeeded,
        )
        return charge

    async def refund(self, charge: GatewayCharge) -> None:
        await asyncio.sleep(self._latency_seconds)
        logger.warning(
            "Simulated refund of charge %s: amount=%s", charge.charge_id, charge.amount
        )

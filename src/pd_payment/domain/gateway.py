# src/pd_payment/domain/gateway.py
"""PaymentGateway Protocol: what settlement needs from a payment processor.

charge() reports declines through GatewayCharge.succeeded rather than by
raising; refund() is the compensating action for a charge whose
settlement could not be committed.
"""
from decimal import Decimal
from typing import Protocol

from src.pd_payment.domain.models import GatewayCharge


class PaymentGatewayProtocol(Protocol):
    async def charge(self, payment_method: str, amount: Decimal) -> GatewayCharge: ...

    async def refund(self, charge: GatewayCharge) -> None: ...

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from .gateway import BasePaymentGateway

STUB_SECRET = "stub-secret"


class StubGateway(BasePaymentGateway):
    """Local gateway for development and tests; orders are never sent anywhere."""

    provider = "stub"

    @property
    def secret(self) -> str:
        return self.settings.payment_api_secret or STUB_SECRET

    def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return {
            "order_id": f"order_{uuid.uuid4().hex[:14]}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
            "notes": notes or {},
        }

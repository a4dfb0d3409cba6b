import logging
from decimal import Decimal
from typing import Any

import httpx

from ...config import Settings
from ...core.errors import PaymentGatewayError
from .gateway import BasePaymentGateway

logger = logging.getLogger(__name__)


class RazorpayGateway(BasePaymentGateway):
    provider = "razorpay"

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__(settings)
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.settings.payment_api_url,
            auth=(self.settings.payment_api_key, self.settings.payment_api_secret),
            timeout=self.settings.payment_timeout_sec,
            transport=self._transport,
        )

    def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self.settings.payment_api_key or not self.settings.payment_api_secret:
            raise PaymentGatewayError("Payment gateway is not configured")
        # Amounts are sent in the currency's minor unit
        minor_units = int((Decimal(amount) * 100).to_integral_value())
        payload = {
            "amount": minor_units,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        logger.info("Creating Razorpay order", extra={"receipt": receipt, "amount": minor_units})
        try:
            with self._client() as client:
                response = client.post("/orders", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            logger.exception("Razorpay order creation failed", extra={"receipt": receipt})
            raise PaymentGatewayError("Payment order could not be created") from exc
        order_id = data.get("id")
        if not order_id:
            raise PaymentGatewayError("Payment gateway returned no order id")
        return {
            "order_id": order_id,
            "amount": amount,
            "currency": data.get("currency", currency),
            "receipt": data.get("receipt", receipt),
            "status": data.get("status", "created"),
            "key_id": self.settings.payment_api_key,
        }

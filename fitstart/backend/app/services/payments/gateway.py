import hashlib
import hmac
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any
from ...config import Settings


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """HMAC-SHA256 over ``"<order_id>|<payment_id>"``, hex encoded."""
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class BasePaymentGateway(ABC):
    provider: str = ""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def secret(self) -> str:
        return self.settings.payment_api_secret

    @abstractmethod
    def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Open an order for ``amount`` and return at least ``{"order_id": ...}``.

        ``receipt`` is forwarded to the provider as the idempotency reference.
        Raises ``PaymentGatewayError`` if the provider is unreachable or rejects the order.
        """
        raise NotImplementedError

    def sign(self, order_id: str, payment_id: str) -> str:
        return compute_signature(self.secret, order_id, payment_id)

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not order_id or not payment_id or not signature:
            return False
        return hmac.compare_digest(self.sign(order_id, payment_id), signature)


def get_gateway(settings: Settings) -> BasePaymentGateway:
    if settings.payment_provider == "stub":
        from .stub import StubGateway

        return StubGateway(settings)
    if settings.payment_provider == "razorpay":
        from .razorpay import RazorpayGateway

        return RazorpayGateway(settings)
    raise ValueError(f"Unsupported payment provider {settings.payment_provider}")

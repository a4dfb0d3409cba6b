from .gateway import BasePaymentGateway, compute_signature, get_gateway
from .stub import StubGateway
from .razorpay import RazorpayGateway

__all__ = [
    "BasePaymentGateway",
    "compute_signature",
    "get_gateway",
    "StubGateway",
    "RazorpayGateway",
]

from . import (
    account_service,
    booking_service,
    chat_service,
    interaction_service,
    notification_service,
    slot_service,
    venue_service,
)
__all__ = [
    "account_service",
    "booking_service",
    "chat_service",
    "interaction_service",
    "notification_service",
    "slot_service",
    "venue_service",
]

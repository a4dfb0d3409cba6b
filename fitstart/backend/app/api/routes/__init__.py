from . import (
    auth,
    bookings,
    chat,
    misc,
    notifications,
    venues,
)

__all__ = [
    "auth",
    "bookings",
    "chat",
    "misc",
    "notifications",
    "venues",
]

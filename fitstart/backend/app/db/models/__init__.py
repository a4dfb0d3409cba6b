from .user import User, UserRole, DeviceToken, DevicePlatform, user_favorites
from .venue import Venue, VenueCategory
from .booking import (
    ACTIVE_BOOKING_STATUSES,
    Booking,
    BookingSlot,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
)
from .notification import Notification, NotificationType
from .interaction import Interaction, InteractionType
from .audit_log import AuditLog, ActorType
from .chat import Conversation, Message, SenderRole

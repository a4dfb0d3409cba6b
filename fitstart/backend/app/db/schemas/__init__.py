from .common import ErrorResponse, FieldErrorOut, StatusResponse
from .booking import (
    AvailableSlots,
    Booking,
    BookingCancel,
    BookingCreate,
    BookingCreated,
    BookingPage,
    PaymentOrder,
    PaymentVerify,
    TimeSlotIn,
)
from .venue import FavoriteToggle, Venue, VenueCreate, VenuePage, VenueUpdate
from .user import DeviceTokenIn, PasswordUpdate, TokenResponse, User, UserRegister, UserUpdate
from .notification import Notification
from .chat import Conversation, ConversationDetail, ConversationStart, Message, MessageCreate

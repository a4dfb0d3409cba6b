from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum
from sqlalchemy import (
    CHAR,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class BookingStatus(str, PyEnum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"
    no_show = "no_show"


class PaymentStatus(str, PyEnum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class PaymentMethod(str, PyEnum):
    razorpay = "razorpay"
    cash = "cash"
    card = "card"
    wallet = "wallet"


ACTIVE_BOOKING_STATUSES = (BookingStatus.pending, BookingStatus.confirmed)

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.pending: frozenset({BookingStatus.confirmed, BookingStatus.cancelled}),
    BookingStatus.confirmed: frozenset(
        {BookingStatus.cancelled, BookingStatus.completed, BookingStatus.no_show}
    ),
    BookingStatus.cancelled: frozenset(),
    BookingStatus.completed: frozenset(),
    BookingStatus.no_show: frozenset(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[BookingStatus(current)]


def sources_for(target: BookingStatus) -> list[BookingStatus]:
    """Statuses a booking may be in for ``target`` to be a legal next state."""
    return [status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets]


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_booking_venue_date", "venue_id", "booking_date"),
        Index("ix_booking_user_created", "user_id", "created_at"),
        CheckConstraint("total_hours > 0", name="ck_booking_total_hours_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id", ondelete="CASCADE"))
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_hours: Mapped[int] = mapped_column(Integer, nullable=False)

    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(CHAR(3), default="INR")

    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), default=PaymentStatus.pending, nullable=False
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod), default=PaymentMethod.razorpay
    )
    payment_receipt: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    provider_order_id: Mapped[str | None] = mapped_column(String(64), index=True)
    provider_payment_id: Mapped[str | None] = mapped_column(String(128))
    provider_signature: Mapped[str | None] = mapped_column(String(256))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    booking_status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.pending, nullable=False, index=True
    )
    notes: Mapped[str | None] = mapped_column(Text)
    cancellation_reason: Mapped[str | None] = mapped_column(String(255))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_by: Mapped[str | None] = mapped_column(String(64))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user = relationship("User")
    venue = relationship("Venue", back_populates="bookings")
    time_slots = relationship(
        "BookingSlot",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingSlot.position",
    )

    @property
    def venue_name(self) -> str | None:
        return self.venue.name if self.venue else None


class BookingSlot(Base):
    __tablename__ = "booking_slots"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_booking_slot_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    booking = relationship("Booking", back_populates="time_slots")

from datetime import date, datetime
from decimal import Decimal
from pydantic import AliasChoices, BaseModel, Field
from ..models.booking import BookingStatus, PaymentMethod, PaymentStatus


class TimeSlotIn(BaseModel):
    start_time: str = Field(max_length=5, validation_alias=AliasChoices("start_time", "startTime"))
    end_time: str = Field(max_length=5, validation_alias=AliasChoices("end_time", "endTime"))


class BookingCreate(BaseModel):
    venue_id: int = Field(validation_alias=AliasChoices("venue_id", "venueId"))
    booking_date: date = Field(validation_alias=AliasChoices("booking_date", "bookingDate"))
    time_slots: list[TimeSlotIn] = Field(
        min_length=1, validation_alias=AliasChoices("time_slots", "timeSlots")
    )
    notes: str | None = Field(default=None, max_length=1000)
    idempotency_key: str | None = Field(default=None, max_length=128)


class BookingCancel(BaseModel):
    reason: str | None = Field(default=None, max_length=255)


class PaymentVerify(BaseModel):
    payment_id: str = Field(
        min_length=1, validation_alias=AliasChoices("payment_id", "razorpayPaymentId")
    )
    signature: str = Field(
        min_length=1, validation_alias=AliasChoices("signature", "razorpaySignature")
    )


class TimeSlot(BaseModel):
    start_time: str
    end_time: str

    class Config:
        from_attributes = True


class Booking(BaseModel):
    id: int
    user_id: int
    venue_id: int
    venue_name: str | None = None
    booking_date: date
    time_slots: list[TimeSlot]
    total_hours: int
    hourly_rate: Decimal
    total_amount: Decimal
    currency: str
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    provider_order_id: str | None = None
    paid_at: datetime | None = None
    booking_status: BookingStatus
    notes: str | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class PaymentOrder(BaseModel):
    order_id: str | None
    amount: Decimal
    currency: str
    receipt: str | None = None
    key_id: str | None = None


class BookingCreated(BaseModel):
    success: bool = True
    data: Booking
    payment_order: PaymentOrder
    replayed: bool = False


class BookingPage(BaseModel):
    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    data: list[Booking]


class SlotRange(BaseModel):
    start_time: str
    end_time: str


class AvailableSlots(BaseModel):
    venue_id: int
    date: date
    venue_open_time: str
    venue_close_time: str
    booked_slots: list[SlotRange]
    free_slots: list[SlotRange]

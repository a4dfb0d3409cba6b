from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..config import get_settings
from ..core.constants import PAYMENT_TIMEOUT_REASON, SIGNATURE_MISMATCH_ACTION, SYSTEM_ACTOR
from ..core.errors import (
    ConflictError,
    FieldError,
    InvalidRequestError,
    NotFoundError,
    PaymentVerificationError,
    PermissionDeniedError,
    PolicyViolationError,
    ServiceError,
)
from ..db import models
from ..db.models.booking import BookingStatus, PaymentStatus, can_transition, sources_for
from . import slot_service, venue_service
from .interaction_service import InteractionLogger
from .notification_service import NotificationDispatcher
from .payments import gateway
from .payments.gateway import BasePaymentGateway
from .slot_service import TimeSlot

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BookingRequest:
    venue_id: int
    booking_date: date
    time_slots: list[TimeSlot]
    notes: str | None = None
    idempotency_key: str | None = None


@dataclass(slots=True)
class BookingCreated:
    booking: models.Booking
    order: dict[str, Any] = field(default_factory=dict)
    replayed: bool = False


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _gateway(client: BasePaymentGateway | None) -> BasePaymentGateway:
    return client or gateway.get_gateway(get_settings())


def _receipt_for(user_id: int, idempotency_key: str | None) -> str:
    if not idempotency_key:
        return f"bk_{uuid.uuid4().hex}"
    digest = hashlib.sha256(f"{user_id}:{idempotency_key}".encode()).hexdigest()
    return f"bk_{digest[:32]}"


def _order_reference(booking: models.Booking) -> dict[str, Any]:
    return {
        "order_id": booking.provider_order_id,
        "amount": booking.total_amount,
        "currency": booking.currency,
        "receipt": booking.payment_receipt,
    }


def _actor_label(actor: models.User) -> str:
    return f"{models.UserRole(actor.role).value}:{actor.id}"


def _is_admin(actor: models.User) -> bool:
    return actor.role == models.UserRole.admin


def _ensure_can_access(booking: models.Booking, actor: models.User, action: str) -> None:
    if booking.user_id != actor.id and not _is_admin(actor):
        raise PermissionDeniedError(f"Not authorized to {action} this booking")


def _find_by_receipt(db: Session, receipt: str) -> models.Booking | None:
    return db.execute(
        select(models.Booking).where(models.Booking.payment_receipt == receipt)
    ).scalar_one_or_none()


def _reject_started_slots(slots: list[TimeSlot], now: datetime) -> None:
    current = now.strftime("%H:%M")
    errors = [
        FieldError(f"time_slots[{index}].start_time", "Slot has already started")
        for index, slot in enumerate(slots)
        if slot.start < current
    ]
    if errors:
        raise InvalidRequestError("Selected time slots are in the past", errors)


def _replay(
    existing: models.Booking, request: BookingRequest, slots: list[TimeSlot]
) -> BookingCreated:
    stored = sorted((slot.start_time, slot.end_time) for slot in existing.time_slots)
    requested = sorted((slot.start, slot.end) for slot in slots)
    if (
        existing.venue_id != request.venue_id
        or existing.booking_date != request.booking_date
        or stored != requested
    ):
        raise ConflictError("Idempotency key was already used for a different booking")
    return BookingCreated(existing, _order_reference(existing), replayed=True)


def get_booking(db: Session, booking_id: int) -> models.Booking:
    booking = db.execute(
        select(models.Booking)
        .options(selectinload(models.Booking.time_slots), selectinload(models.Booking.venue))
        .where(models.Booking.id == booking_id)
    ).scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def get_booking_for(db: Session, booking_id: int, actor: models.User) -> models.Booking:
    booking = get_booking(db, booking_id)
    _ensure_can_access(booking, actor, "access")
    return booking


def create_booking(
    db: Session,
    user: models.User,
    request: BookingRequest,
    *,
    gateway_client: BasePaymentGateway | None = None,
    interactions: InteractionLogger | None = None,
) -> BookingCreated:
    venue = venue_service.get_active_venue(db, request.venue_id)
    now = _utc_now()
    if request.booking_date < now.date():
        raise InvalidRequestError(
            "Booking date is in the past",
            [FieldError("booking_date", "Booking date must be today or later")],
        )
    slots = slot_service.validate_slots(request.time_slots, venue.open_time, venue.close_time)
    if request.booking_date == now.date():
        _reject_started_slots(slots, now)

    receipt = _receipt_for(user.id, request.idempotency_key)
    if request.idempotency_key:
        existing = _find_by_receipt(db, receipt)
        if existing is not None:
            return _replay(existing, request, slots)

    if slot_service.has_conflict(db, venue.id, request.booking_date, slots):
        raise ConflictError("Selected time slots are not available")

    hours = slot_service.total_hours(slots)
    hourly_rate = Decimal(str(venue.hourly_rate))
    total_amount = hourly_rate * hours
    currency = venue.currency or get_settings().payment_currency

    # Nothing is written if the order cannot be opened.
    order = _gateway(gateway_client).create_order(
        total_amount,
        currency,
        receipt,
        notes={"venue_id": venue.id, "user_id": user.id},
    )

    try:
        # Serialises creators per venue on PostgreSQL; SQLite engines hold the database
        # write lock from BEGIN IMMEDIATE instead. Either way the check is repeated here.
        db.execute(
            select(models.Venue.id).where(models.Venue.id == venue.id).with_for_update()
        ).scalar_one()
        if slot_service.has_conflict(db, venue.id, request.booking_date, slots):
            raise ConflictError("Selected time slots are not available")
        booking = models.Booking(
            user_id=user.id,
            venue_id=venue.id,
            booking_date=request.booking_date,
            total_hours=hours,
            hourly_rate=hourly_rate,
            total_amount=total_amount,
            currency=currency,
            payment_receipt=receipt,
            provider_order_id=order["order_id"],
            notes=request.notes,
            time_slots=[
                models.BookingSlot(position=index, start_time=slot.start, end_time=slot.end)
                for index, slot in enumerate(slots)
            ],
        )
        db.add(booking)
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_by_receipt(db, receipt) if request.idempotency_key else None
        if existing is not None:
            return _replay(existing, request, slots)
        raise
    except (ServiceError, SQLAlchemyError):
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(
        "Booking created",
        extra={"booking_id": booking.id, "venue_id": venue.id, "order_id": order["order_id"]},
    )
    if interactions is not None:
        interactions.record(
            user.id, venue.id, models.InteractionType.booking, {"booking_id": booking.id}
        )
    return BookingCreated(booking, order)


def _record_signature_mismatch(
    db: Session, booking: models.Booking, payment_id: str, actor: models.User | None
) -> None:
    logger.warning(
        "Payment signature mismatch",
        extra={
            "booking_id": booking.id,
            "order_id": booking.provider_order_id,
            "payment_id": payment_id,
        },
    )
    actor_type = models.ActorType.system
    if actor is not None:
        actor_type = models.ActorType.admin if _is_admin(actor) else models.ActorType.user
    try:
        db.add(
            models.AuditLog(
                actor_type=actor_type,
                actor_id=actor.id if actor else None,
                action=SIGNATURE_MISMATCH_ACTION,
                entity_type="booking",
                entity_id=booking.id,
                payload={"order_id": booking.provider_order_id, "payment_id": payment_id},
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to write audit log", extra={"booking_id": booking.id})


def _settled_result(booking: models.Booking, payment_id: str) -> models.Booking:
    if (
        booking.booking_status == BookingStatus.confirmed
        and booking.provider_payment_id == payment_id
    ):
        logger.info("Payment already confirmed", extra={"booking_id": booking.id})
        return booking
    raise ConflictError(
        f"Booking is {BookingStatus(booking.booking_status).value} and cannot be confirmed"
    )


def confirm_payment(
    db: Session,
    booking_id: int,
    payment_id: str,
    signature: str,
    *,
    actor: models.User | None = None,
    gateway_client: BasePaymentGateway | None = None,
    notifier: NotificationDispatcher | None = None,
) -> models.Booking:
    booking = get_booking(db, booking_id)
    if actor is not None:
        _ensure_can_access(booking, actor, "confirm")

    if not _gateway(gateway_client).verify_signature(
        booking.provider_order_id or "", payment_id, signature
    ):
        _record_signature_mismatch(db, booking, payment_id, actor)
        raise PaymentVerificationError("Invalid payment signature")

    if booking.booking_status != BookingStatus.pending:
        return _settled_result(booking, payment_id)

    now = _utc_now()
    try:
        confirmed = _transition(
            db,
            booking,
            BookingStatus.confirmed,
            conditions=(models.Booking.payment_status == PaymentStatus.pending,),
            payment_status=PaymentStatus.completed,
            provider_payment_id=payment_id,
            provider_signature=signature,
            paid_at=now,
        )
        if not confirmed:
            db.rollback()
            db.refresh(booking)
            return _settled_result(booking, payment_id)
        # Same transaction as the status change: both commit or neither does.
        db.execute(
            update(models.Venue)
            .where(models.Venue.id == booking.venue_id)
            .values(booking_count=models.Venue.booking_count + 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to confirm booking", extra={"booking_id": booking.id})
        raise

    db.refresh(booking)
    db.refresh(booking.venue)
    logger.info("Booking confirmed", extra={"booking_id": booking.id, "payment_id": payment_id})
    if notifier is not None:
        notifier.notify(
            booking.user_id,
            "Booking Confirmed!",
            f"Your booking at {booking.venue.name} has been confirmed.",
            {"type": "booking", "booking_id": booking.id},
            models.NotificationType.booking,
        )
    return booking


def cancel_booking(
    db: Session,
    booking_id: int,
    actor: models.User,
    reason: str | None = None,
    *,
    notifier: NotificationDispatcher | None = None,
) -> models.Booking:
    booking = get_booking(db, booking_id)
    _ensure_can_access(booking, actor, "cancel")
    status = BookingStatus(booking.booking_status)
    if status == BookingStatus.cancelled:
        raise ConflictError("Booking is already cancelled")
    if not can_transition(status, BookingStatus.cancelled):
        raise ConflictError(f"Cannot cancel a {status.value} booking")

    settings = get_settings()
    starts_at = datetime.combine(booking.booking_date, time.min, tzinfo=timezone.utc)
    now = _utc_now()
    if starts_at - now < timedelta(hours=settings.cancellation_cutoff_hours):
        raise PolicyViolationError(
            f"Cannot cancel booking within {settings.cancellation_cutoff_hours} hours "
            "of scheduled time"
        )

    try:
        cancelled = _transition(
            db,
            booking,
            BookingStatus.cancelled,
            cancellation_reason=reason,
            cancelled_at=now,
            cancelled_by=_actor_label(actor),
        )
        if not cancelled:
            db.rollback()
            raise ConflictError("Booking status changed, please retry")
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info("Booking cancelled", extra={"booking_id": booking.id, "actor": _actor_label(actor)})
    if notifier is not None:
        notifier.notify(
            booking.user_id,
            "Booking Cancelled",
            f"Your booking at {booking.venue.name} has been cancelled.",
            {"type": "booking", "booking_id": booking.id},
            models.NotificationType.booking,
        )
    return booking


def _transition(
    db: Session,
    booking: models.Booking,
    target: BookingStatus,
    *,
    conditions: tuple = (),
    **values: Any,
) -> bool:
    """Compare-and-set the booking status; ``False`` if another writer moved it first.

    Does not commit.
    """
    result = db.execute(
        update(models.Booking)
        .where(
            models.Booking.id == booking.id,
            models.Booking.booking_status.in_(sources_for(target)),
            *conditions,
        )
        .values(booking_status=target, updated_at=_utc_now(), **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def get_available_slots(db: Session, venue_id: int, booking_date: date) -> dict[str, Any]:
    venue = venue_service.get_active_venue(db, venue_id)
    booked = slot_service.booked_slots(db, venue.id, booking_date)
    free = slot_service.free_ranges(venue.open_time, venue.close_time, booked)
    return {
        "venue_id": venue.id,
        "date": booking_date,
        "venue_open_time": venue.open_time,
        "venue_close_time": venue.close_time,
        "booked_slots": [slot.as_dict() for slot in booked],
        "free_slots": [slot.as_dict() for slot in free],
    }


def list_user_bookings(
    db: Session,
    user: models.User,
    *,
    status: BookingStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[models.Booking], int]:
    filters = [models.Booking.user_id == user.id]
    if status is not None:
        filters.append(models.Booking.booking_status == status)
    if start_date is not None:
        filters.append(models.Booking.booking_date >= start_date)
    if end_date is not None:
        filters.append(models.Booking.booking_date <= end_date)

    total = db.scalar(select(func.count(models.Booking.id)).where(*filters)) or 0
    items = (
        db.execute(
            select(models.Booking)
            .options(selectinload(models.Booking.time_slots), selectinload(models.Booking.venue))
            .where(*filters)
            .order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return list(items), int(total)


def expire_pending_bookings(db: Session, now: datetime | None = None) -> int:
    """Cancel pending bookings whose payment window has elapsed."""
    now = now or _utc_now()
    cutoff = now - timedelta(minutes=get_settings().pending_payment_timeout_min)
    result = db.execute(
        update(models.Booking)
        .where(
            models.Booking.booking_status == BookingStatus.pending,
            models.Booking.payment_status == PaymentStatus.pending,
            models.Booking.created_at < cutoff,
        )
        .values(
            booking_status=BookingStatus.cancelled,
            payment_status=PaymentStatus.failed,
            cancellation_reason=PAYMENT_TIMEOUT_REASON,
            cancelled_at=now,
            cancelled_by=SYSTEM_ACTOR,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount:
        logger.info("Expired unpaid bookings", extra={"count": result.rowcount})
    return result.rowcount


def complete_past_bookings(db: Session, today: date | None = None) -> int:
    today = today or _utc_now().date()
    result = db.execute(
        update(models.Booking)
        .where(
            models.Booking.booking_status == BookingStatus.confirmed,
            models.Booking.booking_date < today,
        )
        .values(booking_status=BookingStatus.completed, updated_at=_utc_now())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount


def reconcile_booking_counts(db: Session) -> int:
    """Reset ``venue.booking_count`` to the number of paid bookings; returns venues fixed."""
    paid_counts = dict(
        db.execute(
            select(models.Booking.venue_id, func.count(models.Booking.id))
            .where(models.Booking.paid_at.is_not(None))
            .group_by(models.Booking.venue_id)
        ).all()
    )
    fixed = 0
    for venue in db.execute(select(models.Venue)).scalars():
        expected = int(paid_counts.get(venue.id, 0))
        if venue.booking_count != expected:
            logger.warning(
                "Venue booking count drifted",
                extra={"venue_id": venue.id, "stored": venue.booking_count, "expected": expected},
            )
            venue.booking_count = expected
            fixed += 1
    db.commit()
    return fixed


def bookings_on(db: Session, booking_date: date) -> list[models.Booking]:
    return list(
        db.execute(
            select(models.Booking)
            .options(selectinload(models.Booking.venue), selectinload(models.Booking.time_slots))
            .where(
                models.Booking.booking_status == BookingStatus.confirmed,
                models.Booking.booking_date == booking_date,
            )
        )
        .scalars()
        .all()
    )


def list_venue_bookings(db: Session, venue_id: int, booking_date: date) -> list[models.Booking]:
    if db.get(models.Venue, venue_id) is None:
        raise NotFoundError("Venue not found")
    return list(
        db.execute(
            select(models.Booking)
            .options(selectinload(models.Booking.time_slots), selectinload(models.Booking.venue))
            .where(
                models.Booking.venue_id == venue_id,
                models.Booking.booking_date == booking_date,
            )
            .order_by(models.Booking.created_at, models.Booking.id)
        )
        .scalars()
        .all()
    )

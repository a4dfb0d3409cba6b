import math
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from ...api import deps
from ...api.errors import to_http_exception
from ...config import get_settings
from ...core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...core.errors import ServiceError
from ...db.session import get_db
from ...db import models, schemas
from ...services import booking_service
from ...services.interaction_service import InteractionLogger
from ...services.notification_service import NotificationDispatcher
from ...services.payments.gateway import BasePaymentGateway
from ...services.slot_service import TimeSlot

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=schemas.BookingPage)
def list_bookings(
    status_filter: models.BookingStatus | None = Query(default=None, alias="status"),
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    bookings, total = booking_service.list_user_bookings(
        db,
        user,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return schemas.BookingPage(
        count=len(bookings),
        total=total,
        page=page,
        pages=math.ceil(total / limit),
        data=[schemas.Booking.model_validate(booking) for booking in bookings],
    )


@router.get("/available-slots/{venue_id}", response_model=schemas.AvailableSlots)
def available_slots(
    venue_id: int,
    booking_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    try:
        return booking_service.get_available_slots(db, venue_id, booking_date)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{booking_id}", response_model=schemas.Booking)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return booking_service.get_booking_for(db, booking_id, user)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=schemas.BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: schemas.BookingCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
    gateway_client: BasePaymentGateway = Depends(deps.get_payment_gateway),
    interactions: InteractionLogger = Depends(deps.get_interaction_logger),
):
    request = booking_service.BookingRequest(
        venue_id=payload.venue_id,
        booking_date=payload.booking_date,
        time_slots=[TimeSlot(slot.start_time, slot.end_time) for slot in payload.time_slots],
        notes=payload.notes,
        idempotency_key=payload.idempotency_key,
    )
    try:
        created = booking_service.create_booking(
            db, user, request, gateway_client=gateway_client, interactions=interactions
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    order = created.order
    return schemas.BookingCreated(
        data=schemas.Booking.model_validate(created.booking),
        payment_order=schemas.PaymentOrder(
            order_id=order.get("order_id"),
            amount=order.get("amount", created.booking.total_amount),
            currency=order.get("currency", created.booking.currency),
            receipt=order.get("receipt"),
            key_id=get_settings().payment_api_key or None,
        ),
        replayed=created.replayed,
    )


@router.post("/{booking_id}/verify-payment", response_model=schemas.Booking)
def verify_payment(
    booking_id: int,
    payload: schemas.PaymentVerify,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
    gateway_client: BasePaymentGateway = Depends(deps.get_payment_gateway),
    notifier: NotificationDispatcher = Depends(deps.get_notifier),
):
    try:
        return booking_service.confirm_payment(
            db,
            booking_id,
            payload.payment_id,
            payload.signature,
            actor=user,
            gateway_client=gateway_client,
            notifier=notifier,
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{booking_id}/cancel", response_model=schemas.Booking)
def cancel_booking(
    booking_id: int,
    payload: schemas.BookingCancel,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(deps.get_notifier),
):
    try:
        return booking_service.cancel_booking(
            db, booking_id, user, payload.reason, notifier=notifier
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/admin/venue/{venue_id}", response_model=list[schemas.Booking])
def list_venue_bookings(
    venue_id: int,
    booking_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    try:
        return booking_service.list_venue_bookings(db, venue_id, booking_date)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

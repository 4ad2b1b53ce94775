import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cinema_booking.api.dependencies import (
    get_current_user,
    get_db,
    get_settings,
    require_admin,
)
from cinema_booking.api.schemas.schemas import (
    BookingDetailResponse,
    BookingResponse,
    CreateBookingRequest,
    Envelope,
    ExpireBookingsResponse,
    PaginatedData,
    PaginationMeta,
    PaymentMethodResponse,
    PaymentResponse,
    ProcessPaymentRequest,
    ScheduleDetailsResponse,
    ScheduleSeatMapResponse,
)
from cinema_booking.application.booking_lifecycle_service import BookingLifecycleService
from cinema_booking.application.booking_service import BookingService
from cinema_booking.application.payment_service import PaymentService
from cinema_booking.application.seat_availability_service import SeatAvailabilityService
from cinema_booking.config import Settings
from cinema_booking.infrastructure.db.models import User


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    return {"message": "Cinema booking service is running"}


# -----------------------------
# Public
# -----------------------------
@router.get(
    "/api/payment-methods",
    response_model=Envelope[list[PaymentMethodResponse]],
)
def list_payment_methods(db: Session = Depends(get_db)):
    methods = PaymentService(db).get_payment_methods()
    return Envelope(
        data=[PaymentMethodResponse.model_validate(method) for method in methods],
    )


@router.get(
    "/api/schedules/{schedule_id}/seats",
    response_model=Envelope[ScheduleSeatMapResponse],
)
def get_schedule_seats(
    schedule_id: str,
    db: Session = Depends(get_db),
):
    seat_map = SeatAvailabilityService(db).availability_for_schedule(schedule_id)
    return Envelope(data=ScheduleSeatMapResponse.model_validate(seat_map))


# -----------------------------
# Customer
# -----------------------------
@router.post(
    "/api/booking",
    response_model=Envelope[BookingResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    request: CreateBookingRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user),
):
    booking = BookingService(db, settings).create_booking(
        user_id=current_user.id,
        schedule_id=str(request.schedule_id),
        seat_ids=[str(seat_id) for seat_id in request.seat_ids],
        payment_method_id=str(request.payment_method_id) if request.payment_method_id else None,
    )
    return Envelope(data=BookingResponse.model_validate(booking))


@router.get(
    "/api/user/bookings",
    response_model=Envelope[PaginatedData[BookingResponse]],
)
def list_user_bookings(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user),
):
    result = BookingLifecycleService(db, settings).list_user_bookings(
        current_user.id,
        page=page,
        per_page=per_page,
    )
    return Envelope(
        data=PaginatedData[BookingResponse](
            data=[BookingResponse.model_validate(item) for item in result.items],
            pagination=PaginationMeta(
                total=result.total,
                page=result.page,
                per_page=result.per_page,
                total_pages=result.total_pages,
            ),
        )
    )


@router.post(
    "/api/pay",
    response_model=Envelope[PaymentResponse],
)
def process_payment(
    request: ProcessPaymentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payment = PaymentService(db).process_payment(
        user_id=current_user.id,
        booking_id=str(request.booking_id),
        payment_method_id=str(request.payment_method_id),
        amount=request.amount,
        transaction_id=request.transaction_id,
    )
    return Envelope(data=PaymentResponse.model_validate(payment))


# -----------------------------
# Admin
# -----------------------------
@router.get(
    "/api/admin/bookings/{booking_id}",
    response_model=Envelope[BookingDetailResponse],
)
def get_booking_detail(
    booking_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    admin: User = Depends(require_admin),
):
    detail = BookingLifecycleService(db, settings).get_booking_detail(booking_id)
    booking = BookingResponse.model_validate(detail.booking)
    return Envelope(
        data=BookingDetailResponse(
            **booking.model_dump(),
            schedule_details=ScheduleDetailsResponse.model_validate(detail.schedule_details),
        )
    )


@router.put(
    "/api/admin/bookings/{booking_id}/cancel",
    response_model=Envelope[BookingResponse],
)
def cancel_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    admin: User = Depends(require_admin),
):
    booking = BookingLifecycleService(db, settings).cancel_booking(booking_id)
    logger.info("Booking %s cancelled by admin %s", booking_id, admin.id)
    return Envelope(data=BookingResponse.model_validate(booking))


@router.post(
    "/api/admin/bookings/expire",
    response_model=Envelope[ExpireBookingsResponse],
)
def expire_pending_bookings(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    admin: User = Depends(require_admin),
):
    expired = BookingLifecycleService(db, settings).expire_pending_bookings()
    return Envelope(
        data=ExpireBookingsResponse(expired_count=len(expired), booking_ids=expired),
    )

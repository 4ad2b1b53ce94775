from cinema_booking.application.views import (
    BookingView,
    PaymentMethodView,
    PaymentView,
    ScheduleDetails,
)
from cinema_booking.infrastructure.db.models import Booking, Payment, PaymentMethod
from cinema_booking.infrastructure.repositories.booking_seat_repository import BookingSeatRepository
from cinema_booking.infrastructure.repositories.catalog_repository import CatalogRepository
from cinema_booking.infrastructure.repositories.payment_repository import PaymentRepository


DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def payment_method_view(method: PaymentMethod) -> PaymentMethodView:
    return PaymentMethodView(
        id=method.id,
        name=method.name,
        is_active=method.is_active,
    )


def payment_view(payment: Payment, method: PaymentMethod) -> PaymentView:
    return PaymentView(
        id=payment.id,
        booking_id=payment.booking_id,
        payment_method=payment_method_view(method),
        amount=payment.amount,
        status=payment.status.value,
        transaction_id=payment.transaction_id,
        created_at=payment.created_at,
    )


class BookingPresenter:
    """Assembles booking display data from the catalog collaborators."""

    def __init__(
        self,
        catalog: CatalogRepository,
        booking_seats: BookingSeatRepository,
        payments: PaymentRepository,
    ):
        self.catalog = catalog
        self.booking_seats = booking_seats
        self.payments = payments

    def schedule_details(self, schedule_id: str) -> ScheduleDetails:
        schedule = self.catalog.get_schedule(schedule_id)
        if not schedule:
            return ScheduleDetails()

        movie = self.catalog.get_movie(schedule.movie_id)
        hall = self.catalog.get_hall(schedule.hall_id)
        cinema = self.catalog.get_cinema(hall.cinema_id) if hall else None

        return ScheduleDetails(
            movie_title=movie.title if movie else "",
            cinema_name=cinema.name if cinema else "",
            hall_number=hall.hall_number if hall else 0,
            show_date=schedule.show_date.strftime(DATE_FORMAT),
            show_time=schedule.show_time.strftime(TIME_FORMAT),
            price=schedule.price,
        )

    def latest_payment(self, booking_id: str) -> PaymentView | None:
        payment = self.payments.get_latest_by_booking_id(booking_id)
        if not payment:
            return None
        method = self.catalog.get_payment_method(payment.payment_method_id)
        if not method:
            return None
        return payment_view(payment, method)

    def booking_view(
        self,
        booking: Booking,
        details: ScheduleDetails | None = None,
        include_payment: bool = False,
    ) -> BookingView:
        details = details or self.schedule_details(booking.schedule_id)
        return BookingView(
            id=booking.id,
            order_id=booking.order_id,
            user_id=booking.user_id,
            schedule_id=booking.schedule_id,
            total_seats=booking.total_seats,
            total_price=booking.total_price,
            status=booking.status.value,
            created_at=booking.created_at,
            movie_title=details.movie_title,
            cinema_name=details.cinema_name,
            hall_number=details.hall_number,
            show_date=details.show_date,
            show_time=details.show_time,
            seat_numbers=self.booking_seats.find_seat_numbers_by_booking_id(booking.id),
            payment=self.latest_payment(booking.id) if include_payment else None,
        )

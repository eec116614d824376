from datetime import date, datetime
from typing import Callable, List
import logging

from . import slot_engine
from .error_utils import BookingNotFoundError, DeleteNotAllowedError
from .models import Booking, User
from .period import TimeSlot

logger = logging.getLogger(__name__)


class BookingService:
    """
    Runs the calendar's booking actions against a record store.

    store: either RecordStoreClient or DatabasePersistence.
    clock: returns the current local wall-clock time; replaced in tests.
    """

    def __init__(self, store, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def load_bookings(self) -> List[Booking]:
        return self.store.get_bookings()

    def check_cell(self, bookings: List[Booking], day: date, slot: TimeSlot, user: User) -> None:
        """
        Click-time check against the list the page was rendered from.
        """
        slot_engine.can_book(bookings, day, slot, user, self.now())

    def confirm_booking(self, day: date, slot: TimeSlot, user: User) -> Booking:
        """
        Re-validates against a fresh booking list before creating, since other users
        may have booked between the cell click and the confirmation.
        """
        bookings = self.store.get_bookings()
        slot_engine.can_book(bookings, day, slot, user, self.now())
        booking = self.store.create_booking(day, slot, user)
        logger.info(f"Booking {booking.id} created for user {user.id} on {day.isoformat()} {slot.label}")
        return booking

    def cancel_booking(self, booking_id: str, user: User) -> Booking:
        bookings = self.store.get_bookings()
        booking = next((b for b in bookings if b.id == str(booking_id)), None)
        if booking is None:
            raise BookingNotFoundError()
        if not slot_engine.can_delete(booking, user, self.now()):
            logger.info(f"Delete of booking {booking_id} refused for user {user.id}")
            raise DeleteNotAllowedError()
        self.store.delete_booking(booking.id)
        logger.info(f"Booking {booking_id} deleted by user {user.id}")
        return booking

"""
Slot availability and booking conflict rules for the weekly calendar.

All functions are pure: the caller passes the current booking list and the
current time, so the same rules run at cell-click time and again at confirm
time against a freshly fetched list.
"""
import enum
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from .error_utils import BookingError, DuplicateBookingError, SlotFullError, SlotInPastError
from .models import Booking, User
from .period import MAX_BOOKINGS_PER_SLOT, TimeSlot

logger = logging.getLogger(__name__)


class CellState(enum.Enum):
    EMPTY = "empty"
    PARTIAL = "partial"
    FULL = "full"
    PAST = "past"


def _as_day(value: Union[date, datetime]) -> date:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    return value


def week_dates(reference: Union[date, datetime]) -> List[date]:
    """
    Returns the seven days Monday..Sunday of the week containing reference.
    Monday is always index 0, independent of locale.
    """
    day = _as_day(reference)
    monday = day - timedelta(days=day.weekday())
    return [monday + timedelta(days=offset) for offset in range(7)]


def is_date_in_past(day: Union[date, datetime], now: datetime) -> bool:
    return _as_day(day) < now.date()


def is_slot_past(day: Union[date, datetime], slot: TimeSlot, now: datetime) -> bool:
    """
    True when the day is before today, or the day is today and the slot has ended.
    """
    day = _as_day(day)
    if day != now.date():
        return is_date_in_past(day, now)
    return now.hour >= slot.end


def bookings_for_cell(bookings: Iterable[Booking], day: Union[date, datetime], slot: TimeSlot) -> List[Booking]:
    day = _as_day(day)
    return [
        booking for booking in bookings
        if booking.date == day
        and booking.time_slot.start == slot.start
        and booking.time_slot.end == slot.end
    ]


def booking_refusal(bookings: Iterable[Booking], day, slot: TimeSlot, user: User, now: datetime) -> Optional[BookingError]:
    """
    Returns the reason the user may not book the cell, or None if booking is allowed.
    Checks run in a fixed order: past slot, duplicate booking, full slot.
    """
    if is_slot_past(day, slot, now):
        return SlotInPastError()

    cell_bookings = bookings_for_cell(bookings, day, slot)
    if any(booking.belongs_to(user) for booking in cell_bookings):
        return DuplicateBookingError()

    if len(cell_bookings) >= MAX_BOOKINGS_PER_SLOT:
        return SlotFullError()

    return None


def can_book(bookings: Iterable[Booking], day, slot: TimeSlot, user: User, now: datetime) -> None:
    """
    Raises the matching BookingError subclass if the cell cannot be booked by user.
    Returns None when the booking may go ahead.
    """
    refusal = booking_refusal(bookings, day, slot, user, now)
    if refusal is not None:
        logger.info("Booking refused for user %s on %s %s: %s",
                    user.id, _as_day(day).isoformat(), slot.label, type(refusal).__name__)
        raise refusal


def cell_state(bookings: Iterable[Booking], day, slot: TimeSlot, now: datetime) -> CellState:
    if is_slot_past(day, slot, now):
        return CellState.PAST
    occupancy = len(bookings_for_cell(bookings, day, slot))
    if occupancy >= MAX_BOOKINGS_PER_SLOT:
        return CellState.FULL
    if occupancy == 1:
        return CellState.PARTIAL
    return CellState.EMPTY


def can_delete(booking: Booking, user: Optional[User], now: datetime) -> bool:
    # Only the owner may remove a booking, and only before its slot has ended
    return booking.belongs_to(user) and not is_slot_past(booking.date, booking.time_slot, now)

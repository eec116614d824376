# Utility functions for the calendar views: Albanian formatting, request parsing and grid building
from datetime import date, datetime
from typing import List, Optional
import re

from . import slot_engine
from .models import Booking, User
from .period import TIME_SLOTS, TimeSlot, find_time_slot

ALBANIAN_MONTHS = ["Janar", "Shkurt", "Mars", "Prill", "Maj", "Qershor",
                   "Korrik", "Gusht", "Shtator", "Tetor", "Nëntor", "Dhjetor"]

# Indexed by date.weekday(), Monday first
ALBANIAN_DAYS = ["Hën", "Mar", "Mër", "Enj", "Pre", "Sht", "Die"]

ALBANIAN_WEEKDAYS = ["E Hënë", "E Martë", "E Mërkurë", "E Enjte", "E Premte", "E Shtunë", "E Diel"]

ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def format_date_header(day: date) -> str:
    # Ex: "19 Hën"
    return f"{day.day} {ALBANIAN_DAYS[day.weekday()]}"


def format_month_year(days: List[date]) -> str:
    """
    Heading for the week shown. Lists a single month, or the first and last month when the week spans two.
    The year is taken from the first day of the week.
    """
    if not days:
        return ""
    months = []
    for day in days:
        month = ALBANIAN_MONTHS[day.month - 1]
        if month not in months:
            months.append(month)
    year = days[0].year
    if len(months) == 1:
        return f"{months[0]} {year}"
    return f"{months[0]} - {months[-1]} {year}"


def format_date_for_display(day: date) -> str:
    # Ex: "E Hënë, 19 Tetor 2026"
    return f"{ALBANIAN_WEEKDAYS[day.weekday()]}, {day.day} {ALBANIAN_MONTHS[day.month - 1]} {day.year}"


def format_time_slot(slot: TimeSlot) -> str:
    return slot.label


def parse_date_param(raw: Optional[str], default: date) -> date:
    """
    Parses a YYYY-MM-DD query or form value.

    Input: raw value from the request, may be None or empty.

    Returns: the parsed date, or default when nothing was given.
    Raises ValueError if the value is present but not a valid calendar date.
    """
    if not raw:
        return default
    raw = raw.strip()
    if not ISO_DATE_PATTERN.fullmatch(raw):
        raise ValueError(f"Invalid date: {raw!r}")
    return date.fromisoformat(raw)


def parse_slot_param(raw: Optional[str]) -> TimeSlot:
    """
    Resolves a slot start hour from the request into one of the fixed slots.
    Raises ValueError for anything that is not a known start hour.
    """
    try:
        start = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid slot: {raw!r}")
    slot = find_time_slot(start)
    if slot is None:
        raise ValueError(f"Unknown slot start hour: {start}")
    return slot


def build_week_grid(bookings: List[Booking], days: List[date], user: Optional[User], now: datetime) -> List[dict]:
    """
    Builds the rows rendered by the calendar template, one per fixed slot.

    Each cell carries its state, its occupants and whether it is drawn as clickable.
    Each occupant is flagged when it belongs to the current user and when it can still be deleted.
    """
    rows = []
    for slot in TIME_SLOTS:
        cells = []
        for day in days:
            cell_bookings = slot_engine.bookings_for_cell(bookings, day, slot)
            state = slot_engine.cell_state(bookings, day, slot, now)
            cells.append({
                "day": day,
                "state": state.value,
                # Past and full cells still answer a click with the refusal message
                "clickable": state in (slot_engine.CellState.EMPTY, slot_engine.CellState.PARTIAL),
                "bookings": [
                    {
                        "booking": booking,
                        "own": booking.belongs_to(user),
                        "deletable": slot_engine.can_delete(booking, user, now),
                    }
                    for booking in cell_bookings
                ],
            })
        rows.append({"slot": slot, "label": format_time_slot(slot), "cells": cells})
    return rows

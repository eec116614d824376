# Fixed booking windows used by the weekly calendar
from dataclasses import dataclass
from typing import Optional

# Maximum bookings held by a single cell (day + slot)
MAX_BOOKINGS_PER_SLOT = 2


"""
Defined as a pair of whole hours on the local wall-clock.
"""
@dataclass(frozen=True)
class TimeSlot:
    start: int
    end: int

    @property
    def label(self) -> str:
        return f"{self.start:02d}:00-{self.end:02d}:00"

    def to_dict(self):
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data) -> "TimeSlot":
        return cls(int(data["start"]), int(data["end"]))


# Two hour slots shown as rows of the week grid
TIME_SLOTS = (
    TimeSlot(10, 12),
    TimeSlot(12, 14),
    TimeSlot(14, 16),
    TimeSlot(16, 18),
    TimeSlot(18, 20),
)


def find_time_slot(start: int) -> Optional[TimeSlot]:
    """Returns the fixed slot beginning at the given hour, or None."""
    for slot in TIME_SLOTS:
        if slot.start == start:
            return slot
    return None

# Records exchanged with the record store
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional

from .period import TimeSlot


def parse_booking_day(raw: str) -> date:
    """
    The store may hold either a plain ISO date or a full ISO timestamp.
    Only the calendar day part (before the 'T') is kept.
    Raises ValueError for anything that is not such a string.
    """
    if not isinstance(raw, str):
        raise ValueError(f"Booking date is not a string: {raw!r}")
    return date.fromisoformat(raw.split("T")[0])


@dataclass(frozen=True)
class Booking:
    date: date
    time_slot: TimeSlot
    user_id: Any
    user_name: str
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        booking_id = data.get("id")
        return cls(
            date=parse_booking_day(data["date"]),
            time_slot=TimeSlot.from_dict(data["timeSlot"]),
            user_id=data["userId"],
            user_name=data.get("userName", ""),
            id=str(booking_id) if booking_id is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        # Store shape: camelCase keys, date as YYYY-MM-DD
        data = {
            "date": self.date.isoformat(),
            "timeSlot": self.time_slot.to_dict(),
            "userId": self.user_id,
            "userName": self.user_name,
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    def belongs_to(self, user) -> bool:
        return user is not None and self.user_id == user.id


@dataclass(frozen=True)
class User:
    id: Any
    username: str
    name: str
    email: str = ""
    role: str = "user"
    password: Optional[str] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            username=data.get("username", ""),
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=data.get("role", "user"),
            password=data.get("password"),
        )

    def to_dict(self) -> Dict[str, Any]:
        # Credentials are never serialized back out
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }

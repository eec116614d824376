from datetime import date
from typing import Any, List
import logging

import requests

from .error_utils import NetworkFailureError
from .models import Booking, User
from .period import TimeSlot

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001"
DEFAULT_TIMEOUT = 10


class RecordStoreClient:
    """
    Client for the generic HTTP record store holding the 'bookings' and 'users' collections.

    The store has no business rules of its own: it lists, creates and deletes records.
    Every call uses the same blanket timeout and is attempted once.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT, session: requests.Session = None):
        self._base_url = base_url.rstrip('/')
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    @property
    def base_url(self):
        return self._base_url

    def close(self) -> None:
        self._session.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """
        Internal function performing one round trip with the store.
        Translates every transport or protocol problem into NetworkFailureError.
        """
        url = f"{self._base_url}{path}"
        logger.info("Executing request: %s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Record store request failed: {method} {url}: {e}")
            raise NetworkFailureError() from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Record store returned a non-JSON body for {method} {url}")
            raise NetworkFailureError() from e

    def get_bookings(self) -> List[Booking]:
        data = self._request("GET", "/bookings")
        try:
            return [Booking.from_dict(item) for item in data or []]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed booking record from store: {e}")
            raise NetworkFailureError() from e

    def create_booking(self, day: date, slot: TimeSlot, user: User) -> Booking:
        """
        Posts a new booking. The store echoes the record back with its generated id.
        """
        payload = Booking(date=day, time_slot=slot, user_id=user.id, user_name=user.name).to_dict()
        data = self._request("POST", "/bookings", json=payload)
        try:
            return Booking.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed booking echoed by store: {e}")
            raise NetworkFailureError() from e

    def delete_booking(self, booking_id: str) -> None:
        self._request("DELETE", f"/bookings/{booking_id}")

    def find_users(self, username: str) -> List[User]:
        data = self._request("GET", "/users", params={"username": username})
        try:
            return [User.from_dict(item) for item in data or []]
        except (KeyError, TypeError) as e:
            logger.error(f"Malformed user record from store: {e}")
            raise NetworkFailureError() from e

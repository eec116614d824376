from contextlib import contextmanager
from datetime import date
from typing import List
import logging
import os

import psycopg2
from psycopg2 import errors
from psycopg2.extras import DictCursor

from .error_utils import DuplicateBookingError, NetworkFailureError, SlotFullError
from .models import Booking, User
from .period import MAX_BOOKINGS_PER_SLOT, TimeSlot

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


class DatabasePersistence:
    """
    PostgreSQL backed record store with the same interface as RecordStoreClient.

    Unlike the HTTP store, capacity and duplicate rules are enforced by the database itself
    when a booking is inserted, so two clients racing for the last place cannot both win.
    """

    def __init__(self, database_url: str = None):
        self._database_url = database_url or os.environ.get('DATABASE_URL')
        self._setup_schema()

    @contextmanager
    def _database_connect(self):
        """
        Internal function to manage the Postgres database connections.
        Uses DATABASE_URL when configured, otherwise the local 'booking_calendar' database.
        """
        try:
            if self._database_url:
                connection = psycopg2.connect(self._database_url)
            else:
                connection = psycopg2.connect(dbname='booking_calendar')
        except psycopg2.OperationalError as e:
            logger.error(f"Database connection failed: {e.args}")
            raise NetworkFailureError() from e
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    @staticmethod
    def _row_to_booking(row) -> Booking:
        return Booking(
            date=row['booking_date'],
            time_slot=TimeSlot(row['slot_start'], row['slot_end']),
            user_id=row['user_id'],
            user_name=row['user_name'],
            id=str(row['id']),
        )

    @staticmethod
    def _cell_lock_key(day: date, slot: TimeSlot) -> int:
        # One advisory lock per cell: ordinal day and start hour packed into a bigint
        return day.toordinal() * 100 + slot.start

    def get_bookings(self) -> List[Booking]:
        query = "SELECT id, booking_date, slot_start, slot_end, user_id, user_name FROM bookings ORDER BY booking_date, slot_start, id"
        logger.info("Executing query: %s", query)
        with self._database_connect() as conn:
            with conn.cursor(cursor_factory=DictCursor) as cursor:
                try:
                    cursor.execute(query)
                    rows = cursor.fetchall()
                except psycopg2.DatabaseError as e:
                    logger.error(f"Booking retrieval failed: {e.args}")
                    raise NetworkFailureError() from e
        return [self._row_to_booking(row) for row in rows]

    def create_booking(self, day: date, slot: TimeSlot, user: User) -> Booking:
        """
        Inserts a booking only while the cell holds fewer than MAX_BOOKINGS_PER_SLOT rows.
        The advisory lock serializes concurrent inserts for the same cell until commit.

        Refusals follow the same order as the slot engine: DuplicateBookingError when the user
        already holds a row for the cell (or the unique constraint fires), then SlotFullError
        when the conditional insert matched nothing.
        """
        own_query = """
            SELECT 1 FROM bookings
            WHERE booking_date = %s AND slot_start = %s AND slot_end = %s AND user_id = %s;"""
        query = """
            INSERT INTO bookings (booking_date, slot_start, slot_end, user_id, user_name)
            SELECT %s, %s, %s, %s, %s
            WHERE (SELECT COUNT(*) FROM bookings
                   WHERE booking_date = %s AND slot_start = %s AND slot_end = %s) < %s
            RETURNING id, booking_date, slot_start, slot_end, user_id, user_name;"""
        logger.info("Executing query: %s", query)
        with self._database_connect() as conn:
            with conn.cursor(cursor_factory=DictCursor) as cursor:
                try:
                    cursor.execute("SELECT pg_advisory_xact_lock(%s)", (self._cell_lock_key(day, slot),))
                    cursor.execute(own_query, (day, slot.start, slot.end, user.id))
                    if cursor.fetchone() is not None:
                        logger.info(f"Duplicate booking rejected by database for user {user.id}")
                        raise DuplicateBookingError()
                    cursor.execute(query, (day, slot.start, slot.end, user.id, user.name,
                                           day, slot.start, slot.end, MAX_BOOKINGS_PER_SLOT))
                    row = cursor.fetchone()
                except errors.UniqueViolation as e:
                    logger.info(f"Duplicate booking rejected by database for user {user.id}")
                    raise DuplicateBookingError() from e
                except psycopg2.DatabaseError as e:
                    logger.error(f"Booking insertion failed: {e.args}")
                    raise NetworkFailureError() from e
        if row is None:
            logger.info(f"Full slot rejected by database: {day.isoformat()} {slot.label}")
            raise SlotFullError()
        return self._row_to_booking(row)

    def delete_booking(self, booking_id: str) -> None:
        query = "DELETE FROM bookings WHERE id::text = %s"
        logger.info("Executing query: %s", query)
        with self._database_connect() as conn:
            with conn.cursor() as cursor:
                try:
                    cursor.execute(query, (str(booking_id),))
                except psycopg2.DatabaseError as e:
                    logger.error(f"Booking deletion failed: {e.args}")
                    raise NetworkFailureError() from e

    def find_users(self, username: str) -> List[User]:
        query = "SELECT id, username, password, name, email, role FROM users WHERE username = %s"
        logger.info("Executing query: %s", query)
        with self._database_connect() as conn:
            with conn.cursor(cursor_factory=DictCursor) as cursor:
                try:
                    cursor.execute(query, (username,))
                    rows = cursor.fetchall()
                except psycopg2.DatabaseError as e:
                    logger.error(f"User lookup failed: {e.args}")
                    raise NetworkFailureError() from e
        return [User.from_dict(dict(row)) for row in rows]

    def _setup_schema(self):
        """
        Internal function to set-up the database schema if the tables do not exist.
        """
        with self._database_connect() as conn:
            with conn.cursor() as cursor:
                cursor.execute("""
                    SELECT COUNT(*)
                    FROM information_schema.tables
                    WHERE table_schema = 'public' AND table_name = 'users';
                """)
                if cursor.fetchone()[0] == 0:
                    logger.info("Setting up the users table.")
                    cursor.execute("""
                        CREATE TABLE users (
                        id serial PRIMARY KEY,
                        username text UNIQUE NOT NULL,
                        password text NOT NULL,
                        name text NOT NULL,
                        email text NOT NULL DEFAULT '',
                        role text NOT NULL DEFAULT 'user');
                    """)
                cursor.execute("""
                    SELECT COUNT(*)
                    FROM information_schema.tables
                    WHERE table_schema = 'public' AND table_name = 'bookings';
                """)
                if cursor.fetchone()[0] == 0:
                    logger.info("Setting up the bookings table.")
                    cursor.execute("""
                        CREATE TABLE bookings (
                        id serial PRIMARY KEY,
                        booking_date date NOT NULL,
                        slot_start integer NOT NULL,
                        slot_end integer NOT NULL,
                        user_id integer NOT NULL REFERENCES users (id),
                        user_name text NOT NULL,
                        CONSTRAINT unique_user_per_cell UNIQUE (booking_date, slot_start, slot_end, user_id));
                    """)

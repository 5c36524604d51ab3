"""
Persistence contract for booking records, plus a dict-backed implementation
used for local development and tests.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from venue_booking.models.booking import BlockedRange, Booking, BookingStatus

class PersistenceError(Exception):
    """Raised when the datastore is unreachable or a read/write fails."""

class BookingStore(ABC):

    @abstractmethod
    async def create(self, booking: Booking) -> Booking:
        ...

    @abstractmethod
    async def get(self, booking_id: str) -> Optional[Booking]:
        ...

    @abstractmethod
    async def find_recent_by_email(self, email: str, since: datetime) -> Optional[Booking]:
        """Any booking (any status) for ``email`` created at or after ``since``."""

    @abstractmethod
    async def find_confirmed_overlaps(self, from_date: date, to_date: date,
                                      exclude_id: Optional[str] = None) -> List[Booking]:
        """Confirmed bookings whose closed date range intersects [from_date, to_date]."""

    @abstractmethod
    async def list_confirmed_ranges(self) -> List[BlockedRange]:
        ...

    @abstractmethod
    async def list_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        ...

    @abstractmethod
    async def update_if_status(self, booking_id: str, expected: BookingStatus,
                               changes: Dict[str, Any]) -> Optional[Booking]:
        """
        Atomically apply ``changes`` if the booking currently has status ``expected``.
        Returns the updated booking, or None when nothing matched.
        """

class InMemoryBookingStore(BookingStore):
    """
    Dict-backed store. Records are copied in and out so callers never share
    mutable state with the store. None of the methods await, so each one runs
    to completion on the event loop without interleaving.
    """

    def __init__(self):
        self._bookings: Dict[str, Booking] = {}

    async def create(self, booking: Booking) -> Booking:
        if booking.id in self._bookings:
            raise PersistenceError(f"Duplicate booking id {booking.id}")
        self._bookings[booking.id] = booking.model_copy(deep=True)
        return booking.model_copy(deep=True)

    async def get(self, booking_id: str) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def find_recent_by_email(self, email: str, since: datetime) -> Optional[Booking]:
        for booking in self._bookings.values():
            if booking.email == email and booking.created_at >= since:
                return booking.model_copy(deep=True)
        return None

    async def find_confirmed_overlaps(self, from_date: date, to_date: date,
                                      exclude_id: Optional[str] = None) -> List[Booking]:
        return [
            b.model_copy(deep=True) for b in self._bookings.values()
            if b.status == BookingStatus.CONFIRMED
            and b.id != exclude_id
            and b.overlaps(from_date, to_date)
        ]

    async def list_confirmed_ranges(self) -> List[BlockedRange]:
        confirmed = [b for b in self._bookings.values() if b.status == BookingStatus.CONFIRMED]
        confirmed.sort(key=lambda b: b.from_date)
        return [BlockedRange(from_date=b.from_date, to_date=b.to_date) for b in confirmed]

    async def list_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        bookings = [b for b in self._bookings.values() if status is None or b.status == status]
        bookings.sort(key=lambda b: b.created_at, reverse=True)
        return [b.model_copy(deep=True) for b in bookings]

    async def update_if_status(self, booking_id: str, expected: BookingStatus,
                               changes: Dict[str, Any]) -> Optional[Booking]:
        current = self._bookings.get(booking_id)
        if current is None or current.status != expected:
            return None
        updated = current.model_copy(update=changes, deep=True)
        self._bookings[booking_id] = updated
        return updated.model_copy(deep=True)

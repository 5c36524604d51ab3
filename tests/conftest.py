import pytest
from datetime import date, datetime, timezone

from venue_booking.models.booking import BookingRequest, BookingStatus, ranges_overlap
from venue_booking.services.booking_store import InMemoryBookingStore
from venue_booking.services.booking_service import BookingService
from tests.helpers import VENUE_CONFIG, FakeClock, RecordingNotifier

@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 5, 1, 9, 0, tzinfo=timezone.utc))

@pytest.fixture
def store():
    return InMemoryBookingStore()

@pytest.fixture
def notifier():
    return RecordingNotifier()

@pytest.fixture
def service(store, notifier, clock):
    return BookingService(store=store, notifier=notifier, clock=clock, venue_config=VENUE_CONFIG)

@pytest.fixture
def make_request():
    def _make(email="asha@example.com", from_date=date(2025, 6, 1), to_date=date(2025, 6, 3), **overrides):
        fields = {
            "name": "Asha Rao",
            "email": email,
            "phone": "+91 98765 43210",
            "event_type": "Wedding",
            "guests": 250,
            "from_date": from_date,
            "to_date": to_date,
            "check_in": "10:00",
            "check_out": "22:00",
            "message": "Need the lawn as well",
        }
        fields.update(overrides)
        return BookingRequest(**fields)
    return _make

@pytest.fixture
def assert_confirmed_disjoint(store):
    async def _check():
        confirmed = await store.list_bookings(BookingStatus.CONFIRMED)
        for i, a in enumerate(confirmed):
            for b in confirmed[i + 1:]:
                assert not ranges_overlap(a.from_date, a.to_date, b.from_date, b.to_date), \
                    f"{a.id} and {b.id} are both confirmed and overlap"
    return _check

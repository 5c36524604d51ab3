import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock, call

from venue_booking.models.booking import Booking, BookingStatus
from venue_booking.services.booking_store import PersistenceError
from venue_booking.services.db_service import SupabaseBookingStore

ROW = {
    "id": "b1",
    "name": "Asha Rao",
    "email": "asha@example.com",
    "phone": "+91 98765 43210",
    "message": None,
    "event_type": "Wedding",
    "guests": 250,
    "check_in": "10:00",
    "check_out": "22:00",
    "from_date": "2025-06-01",
    "to_date": "2025-06-03",
    "status": "pending",
    "created_at": "2025-05-01T09:00:00+00:00",
    "confirmed_at": None,
    "rejected_at": None,
    "rejection_reason": None,
    "source_address": "203.0.113.7",
}

def make_store(rows):
    """Store wired to a fake Supabase client whose query builder records every call."""
    query = MagicMock()
    for method in ("select", "insert", "update", "eq", "neq", "lte", "gte", "order", "limit"):
        getattr(query, method).return_value = query
    query.execute = AsyncMock(return_value=MagicMock(data=rows))

    client = MagicMock()
    client.table.return_value = query

    store = SupabaseBookingStore("https://example.supabase.co", "service-key", table="bookings")
    store._client = client
    return store, client, query

@pytest.mark.asyncio
async def test_confirmed_overlap_query():
    store, client, query = make_store([dict(ROW, status="confirmed")])

    found = await store.find_confirmed_overlaps(date(2025, 6, 2), date(2025, 6, 4), exclude_id="b2")

    client.table.assert_called_with("bookings")
    query.eq.assert_called_with("status", "confirmed")
    query.lte.assert_called_with("from_date", "2025-06-04")
    query.gte.assert_called_with("to_date", "2025-06-02")
    query.neq.assert_called_with("id", "b2")
    assert [b.id for b in found] == ["b1"]
    assert found[0].status == BookingStatus.CONFIRMED

@pytest.mark.asyncio
async def test_recent_by_email_query():
    store, _, query = make_store([])
    since = datetime(2025, 5, 1, 9, 0, tzinfo=timezone.utc)

    assert await store.find_recent_by_email("asha@example.com", since) is None
    query.eq.assert_called_with("email", "asha@example.com")
    query.gte.assert_called_with("created_at", since.isoformat())

@pytest.mark.asyncio
async def test_conditional_update_filters_on_status():
    store, _, query = make_store([dict(ROW, status="confirmed", confirmed_at="2025-05-02T10:00:00+00:00")])

    updated = await store.update_if_status(
        "b1", BookingStatus.PENDING,
        {"status": BookingStatus.CONFIRMED, "confirmed_at": datetime(2025, 5, 2, 10, 0, tzinfo=timezone.utc)},
    )

    payload = query.update.call_args[0][0]
    assert payload["status"] == "confirmed"
    assert type(payload["status"]) is str
    assert type(payload["confirmed_at"]) is str
    assert payload["confirmed_at"].startswith("2025-05-02T10:00:00")
    assert call("id", "b1") in query.eq.call_args_list
    assert call("status", "pending") in query.eq.call_args_list
    assert updated.status == BookingStatus.CONFIRMED

@pytest.mark.asyncio
async def test_conditional_update_miss_returns_none():
    store, _, _ = make_store([])
    assert await store.update_if_status("b1", BookingStatus.PENDING, {"status": BookingStatus.REJECTED}) is None

@pytest.mark.asyncio
async def test_blocked_ranges_are_calendar_dates():
    store, _, query = make_store([
        {"from_date": "2025-06-01", "to_date": "2025-06-03"},
        {"from_date": "2025-07-10T00:00:00+00:00", "to_date": "2025-07-11T00:00:00+00:00"},
    ])

    ranges = await store.list_confirmed_ranges()

    query.select.assert_called_with("from_date,to_date")
    query.order.assert_called_with("from_date", desc=False)
    assert [(r.from_date, r.to_date) for r in ranges] == [
        (date(2025, 6, 1), date(2025, 6, 3)),
        (date(2025, 7, 10), date(2025, 7, 11)),
    ]

@pytest.mark.asyncio
async def test_create_serializes_booking():
    store, _, query = make_store([ROW])
    booking = Booking.model_validate(ROW)

    stored = await store.create(booking)

    payload = query.insert.call_args[0][0]
    assert payload["from_date"] == "2025-06-01"
    assert payload["status"] == "pending"
    assert stored == booking

@pytest.mark.asyncio
async def test_client_errors_become_persistence_errors():
    store, _, query = make_store([])
    query.execute.side_effect = RuntimeError("502 Bad Gateway")

    with pytest.raises(PersistenceError):
        await store.get("b1")

@pytest.mark.asyncio
async def test_missing_credentials():
    store = SupabaseBookingStore("", "")
    with pytest.raises(PersistenceError):
        await store.list_bookings()

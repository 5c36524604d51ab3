from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter
from supabase import create_async_client, AsyncClient

from venue_booking.core.config import settings
from venue_booking.core.logger import logger
from venue_booking.models.booking import BlockedRange, Booking, BookingStatus
from venue_booking.services.booking_store import BookingStore, InMemoryBookingStore, PersistenceError

_changes_adapter = TypeAdapter(Dict[str, Any])

class SupabaseBookingStore(BookingStore):
    """
    Booking records in a Supabase (PostgREST) table.

    Expected columns: id (text, pk), name, email, phone, message, event_type,
    guests (int), check_in, check_out, from_date (date), to_date (date),
    status (text), created_at, confirmed_at, rejected_at (timestamptz),
    rejection_reason, source_address.
    """

    def __init__(self, url: str = "", key: str = "", table: str = "bookings"):
        self._url = url
        self._key = key
        self._table = table
        self._client: Optional[AsyncClient] = None

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not (self._url and self._key):
                logger.error("❌ Supabase credentials missing (SUPABASE_URL / SUPABASE_KEY)")
                raise PersistenceError("Supabase credentials missing")
            try:
                self._client = await create_async_client(self._url, self._key)
                logger.info("✅ Supabase Async client initialized")
            except Exception as e:
                logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                raise PersistenceError("Could not connect to Supabase") from e
        return self._client

    async def _execute(self, operation: str, query) -> List[Dict[str, Any]]:
        try:
            response = await query.execute()
        except Exception as e:
            logger.error(f"❌ DB Error ({operation}): {e}")
            raise PersistenceError(f"{operation} failed") from e
        return response.data or []

    async def _bookings(self):
        client = await self.get_client()
        return client.table(self._table)

    async def create(self, booking: Booking) -> Booking:
        table = await self._bookings()
        rows = await self._execute("create", table.insert(booking.model_dump(mode="json")))
        if not rows:
            raise PersistenceError("create returned no row")
        logger.info(f"✅ Booking {booking.id} stored in DB")
        return Booking.model_validate(rows[0])

    async def get(self, booking_id: str) -> Optional[Booking]:
        table = await self._bookings()
        rows = await self._execute("get", table.select("*").eq("id", booking_id).limit(1))
        return Booking.model_validate(rows[0]) if rows else None

    async def find_recent_by_email(self, email: str, since: datetime) -> Optional[Booking]:
        table = await self._bookings()
        query = table.select("*")\
            .eq("email", email)\
            .gte("created_at", since.isoformat())\
            .limit(1)
        rows = await self._execute("find_recent_by_email", query)
        return Booking.model_validate(rows[0]) if rows else None

    async def find_confirmed_overlaps(self, from_date: date, to_date: date,
                                      exclude_id: Optional[str] = None) -> List[Booking]:
        table = await self._bookings()
        query = table.select("*")\
            .eq("status", BookingStatus.CONFIRMED.value)\
            .lte("from_date", to_date.isoformat())\
            .gte("to_date", from_date.isoformat())
        if exclude_id:
            query = query.neq("id", exclude_id)
        rows = await self._execute("find_confirmed_overlaps", query)
        return [Booking.model_validate(row) for row in rows]

    async def list_confirmed_ranges(self) -> List[BlockedRange]:
        table = await self._bookings()
        query = table.select("from_date,to_date")\
            .eq("status", BookingStatus.CONFIRMED.value)\
            .order("from_date", desc=False)
        rows = await self._execute("list_confirmed_ranges", query)
        # Timestamp-typed columns still reduce to their calendar date
        return [
            BlockedRange(from_date=str(row["from_date"])[:10], to_date=str(row["to_date"])[:10])
            for row in rows
        ]

    async def list_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        table = await self._bookings()
        query = table.select("*")
        if status:
            query = query.eq("status", status.value)
        query = query.order("created_at", desc=True)
        rows = await self._execute("list_bookings", query)
        return [Booking.model_validate(row) for row in rows]

    async def update_if_status(self, booking_id: str, expected: BookingStatus,
                               changes: Dict[str, Any]) -> Optional[Booking]:
        table = await self._bookings()
        # The status filter makes this a single conditional UPDATE in Postgres
        query = table.update(_changes_adapter.dump_python(changes, mode="json"))\
            .eq("id", booking_id)\
            .eq("status", expected.value)
        rows = await self._execute("update_if_status", query)
        return Booking.model_validate(rows[0]) if rows else None

def create_booking_store() -> BookingStore:
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "memory":
        logger.warning("⚠️ Using in-memory booking store, data is lost on restart")
        return InMemoryBookingStore()
    if backend != "supabase":
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
    return SupabaseBookingStore(settings.SUPABASE_URL, settings.SUPABASE_KEY, settings.BOOKINGS_TABLE)

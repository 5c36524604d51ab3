import asyncio
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from venue_booking.core.config import settings
from venue_booking.core.config_loader import load_venue_config
from venue_booking.core.logger import logger
from venue_booking.models.booking import (
    BlockedRange,
    Booking,
    BookingRequest,
    BookingStatus,
    normalize_email,
    utcnow,
)
from venue_booking.services.booking_store import BookingStore, PersistenceError
from venue_booking.services.db_service import create_booking_store
from venue_booking.services.notification_service import NotificationResult, render_rejection_email, send_email
from venue_booking.services.results import BookingError, ErrorKind, OperationResult

# (to_email, subject, html_body, reply_to, config=venue_config) -> NotificationResult
Notifier = Callable[..., NotificationResult]

class BookingService:
    """
    Admission rules and the pending -> confirmed / rejected lifecycle of venue bookings.

    Submissions are not serialized: two overlapping requests may both end up
    pending. Confirmations are serialized through one lock per service
    instance, and every transition is a conditional update on the pending
    status, so two overlapping bookings can never both be confirmed. Run a
    single instance per process (see ``get_booking_service`` in the API).
    """

    def __init__(
        self,
        store: Optional[BookingStore] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        venue_config: Optional[Dict[str, Any]] = None,
    ):
        self.store = store or create_booking_store()
        self.notifier = notifier or send_email
        self.clock = clock or utcnow
        self.config = venue_config if venue_config is not None else load_venue_config()
        self.rate_limit_hours = settings.RATE_LIMIT_WINDOW_HOURS
        self._confirm_lock = asyncio.Lock()

    async def _guarded(self, action: str, operation: Awaitable[OperationResult]) -> OperationResult:
        try:
            return await operation
        except PersistenceError as e:
            logger.error(f"❌ DB failure, could not {action}: {e}")
            return OperationResult.fail(ErrorKind.PERSISTENCE_FAILURE, f"Failed to {action}")
        except Exception:
            logger.exception(f"🔥 Unexpected error, could not {action}")
            return OperationResult.fail(ErrorKind.INTERNAL_ERROR, "Internal Server Error")

    # --- Submit ---

    async def submit(self, request: BookingRequest, source_address: Optional[str] = None) -> OperationResult[Booking]:
        return await self._guarded("submit booking", self._submit(request, source_address))

    async def _submit(self, request: BookingRequest, source_address: Optional[str]) -> OperationResult[Booking]:
        email = normalize_email(request.email)
        now = self.clock()
        logger.info(f"📥 Booking Request - {email}: {request.from_date} -> {request.to_date}")

        # 1. One submission per email per window, whatever happened to the earlier one
        recent = await self.store.find_recent_by_email(email, now - timedelta(hours=self.rate_limit_hours))
        if recent:
            logger.warning(f"⚠️ Rate limited: {email} already submitted booking {recent.id}")
            return OperationResult.fail(
                ErrorKind.RATE_LIMITED,
                f"You can submit only once every {self.rate_limit_hours} hours.",
            )

        # 2. Only confirmed bookings block new requests
        conflicts = await self.store.find_confirmed_overlaps(request.from_date, request.to_date)
        if conflicts:
            logger.info(f"⛔ Dates {request.from_date} -> {request.to_date} overlap confirmed booking {conflicts[0].id}")
            return OperationResult.fail(
                ErrorKind.DATE_CONFLICT,
                "These dates are already booked. Please choose different dates.",
            )

        # 3. Saved as pending; the admin confirms later
        booking = Booking(
            **request.model_dump(exclude={"email"}),
            email=email,
            status=BookingStatus.PENDING,
            created_at=now,
            source_address=source_address,
        )
        stored = await self.store.create(booking)
        logger.info(f"✅ BOOKING REQUEST SAVED: {stored.id}")
        return OperationResult.ok(stored, "Booking request submitted successfully! We'll contact you soon.")

    # --- Reads ---

    async def list_blocked_ranges(self) -> OperationResult[List[BlockedRange]]:
        return await self._guarded("fetch blocked dates", self._list_blocked_ranges())

    async def _list_blocked_ranges(self) -> OperationResult[List[BlockedRange]]:
        ranges = await self.store.list_confirmed_ranges()
        return OperationResult.ok(ranges, f"{len(ranges)} blocked date ranges")

    async def list_bookings(self, status: Optional[BookingStatus] = None) -> OperationResult[List[Booking]]:
        return await self._guarded("fetch bookings", self._list_bookings(status))

    async def list_pending(self) -> OperationResult[List[Booking]]:
        return await self.list_bookings(BookingStatus.PENDING)

    async def _list_bookings(self, status: Optional[BookingStatus]) -> OperationResult[List[Booking]]:
        bookings = await self.store.list_bookings(status)
        return OperationResult.ok(bookings, f"{len(bookings)} bookings")

    # --- Transitions ---

    async def _load_pending(self, booking_id: str, verb: str):
        """Returns (booking, None) when the booking is pending, else (None, failure)."""
        booking = await self.store.get(booking_id)
        if booking is None:
            return None, OperationResult.fail(ErrorKind.NOT_FOUND, "Booking not found")
        if booking.status != BookingStatus.PENDING:
            return None, OperationResult.fail(
                ErrorKind.INVALID_TRANSITION,
                f"Cannot {verb} booking with status: {booking.status.value}",
            )
        return booking, None

    async def _lost_race(self, booking_id: str, verb: str) -> OperationResult:
        # The conditional update matched nothing: someone else moved the booking first
        current = await self.store.get(booking_id)
        if current is None:
            return OperationResult.fail(ErrorKind.NOT_FOUND, "Booking not found")
        logger.warning(f"⚠️ Booking {booking_id} changed to {current.status.value} before {verb} completed")
        return OperationResult.fail(
            ErrorKind.INVALID_TRANSITION,
            f"Cannot {verb} booking with status: {current.status.value}",
        )

    async def confirm(self, booking_id: str) -> OperationResult[Booking]:
        return await self._guarded("confirm booking", self._confirm(booking_id))

    async def _confirm(self, booking_id: str) -> OperationResult[Booking]:
        async with self._confirm_lock:
            booking, failure = await self._load_pending(booking_id, "confirm")
            if failure:
                return failure

            # Overlapping requests can both be pending; the first one confirmed wins
            conflicts = await self.store.find_confirmed_overlaps(
                booking.from_date, booking.to_date, exclude_id=booking.id
            )
            if conflicts:
                logger.info(f"⛔ Cannot confirm {booking.id}: overlaps confirmed booking {conflicts[0].id}")
                return OperationResult.fail(
                    ErrorKind.DATE_CONFLICT,
                    "Cannot confirm: These dates are already booked by another confirmed booking.",
                )

            updated = await self.store.update_if_status(
                booking.id,
                BookingStatus.PENDING,
                {"status": BookingStatus.CONFIRMED, "confirmed_at": self.clock()},
            )
            if updated is None:
                return await self._lost_race(booking.id, "confirm")

        logger.info(f"✅ BOOKING CONFIRMED: {updated.id}")
        return OperationResult.ok(updated, "Booking confirmed successfully")

    async def reject(self, booking_id: str, reason: Optional[str] = None) -> OperationResult[Booking]:
        return await self._guarded("reject booking", self._reject(booking_id, reason))

    async def _reject(self, booking_id: str, reason: Optional[str]) -> OperationResult[Booking]:
        booking, failure = await self._load_pending(booking_id, "reject")
        if failure:
            return failure

        reason = reason.strip() if reason and reason.strip() else settings.DEFAULT_REJECTION_REASON
        updated = await self.store.update_if_status(
            booking.id,
            BookingStatus.PENDING,
            {
                "status": BookingStatus.REJECTED,
                "rejected_at": self.clock(),
                "rejection_reason": reason,
            },
        )
        if updated is None:
            return await self._lost_race(booking.id, "reject")
        logger.info(f"✅ BOOKING REJECTED: {updated.id}")

        # The rejection is committed; email problems only produce a warning
        notification = await self._notify_rejection(updated)
        if notification.delivered:
            return OperationResult.ok(updated, "Booking rejected and user notified via email")

        warning = BookingError(
            kind=ErrorKind.NOTIFICATION_FAILURE,
            message=f"Rejection email to {updated.email} could not be delivered",
        )
        return OperationResult.ok(
            updated,
            "Booking rejected, but the notification email could not be sent",
            warnings=[warning],
        )

    async def _notify_rejection(self, booking: Booking) -> NotificationResult:
        try:
            subject, html_body = render_rejection_email(booking, self.config)
            # SMTP is blocking; keep it off the event loop
            result = await asyncio.to_thread(
                self.notifier, booking.email, subject, html_body, self.config.get("owner_email"),
                config=self.config,
            )
        except Exception as e:
            logger.exception(f"❌ ERROR SENDING REJECTION EMAIL for booking {booking.id}")
            return NotificationResult(delivered=False, reason=str(e))

        if result.delivered:
            logger.info(f"✅ REJECTION EMAIL SENT TO: {booking.email}")
        else:
            logger.error(f"❌ Rejection email for booking {booking.id} not delivered: {result.reason}")
        return result

from datetime import datetime, timedelta

from venue_booking.services.notification_service import NotificationResult

VENUE_CONFIG = {
    "venue_name": "Lakshmi Function Hall",
    "owner_email": "owner@hall.test",
    "contact_phone": "+91 90000 00000",
    "notifications": {"email_enabled": True, "rejection_subject": "Booking Request - Unable to Confirm"},
}

class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)

class RecordingNotifier:
    """Stands in for send_email and remembers every message."""

    def __init__(self, delivered: bool = True, reason: str = None):
        self.delivered = delivered
        self.reason = reason
        self.sent = []

    def __call__(self, to_email, subject, html_body, reply_to=None, config=None):
        self.sent.append({"to": to_email, "subject": subject, "html": html_body, "reply_to": reply_to, "config": config})
        return NotificationResult(delivered=self.delivered, reason=self.reason)

import os
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from datetime import date
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel
from dotenv import load_dotenv

from venue_booking.core.logger import logger
from venue_booking.core.config_loader import load_venue_config, get_notification_settings
from venue_booking.models.booking import Booking

# Load environment variables
load_dotenv()

# SMTP Configuration
SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")

DEFAULT_REJECTION_SUBJECT = "Booking Request - Unable to Confirm"

class NotificationResult(BaseModel):
    delivered: bool
    reason: Optional[str] = None

def _close(server: smtplib.SMTP):
    # The message is already handed over at this point; a dropped QUIT is not a delivery failure
    try:
        server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"⚠️ SMTP connection did not close cleanly: {e}")

def send_email(to_email: str, subject: str, html_body: str, reply_to: Optional[str] = None,
               config: Optional[Dict[str, Any]] = None) -> NotificationResult:
    """
    Sends an HTML email over SMTP (e.g., Gmail).
    `config` is the venue config; read from disk when not given.
    Never raises for delivery problems: the outcome is in the returned NotificationResult.
    """
    if config is None:
        config = load_venue_config()
    notif_config = get_notification_settings(config)

    if not notif_config.get("email_enabled", False):
        logger.info("ℹ️ Email notifications are disabled in config.")
        return NotificationResult(delivered=False, reason="Email notifications are disabled")

    if not to_email:
        logger.error("❌ No recipient email given.")
        return NotificationResult(delivered=False, reason="Missing recipient address")

    if not SMTP_USERNAME or not SMTP_PASSWORD:
        logger.error("❌ SMTP credentials missing in .env.")
        return NotificationResult(delivered=False, reason="SMTP credentials missing")

    venue_name = config.get("venue_name", "")

    try:
        msg = MIMEMultipart("alternative")
        msg['From'] = f'"{venue_name}" <{SMTP_USERNAME}>' if venue_name else SMTP_USERNAME
        msg['To'] = to_email
        msg['Subject'] = subject
        if reply_to:
            msg['Reply-To'] = reply_to

        msg.attach(MIMEText(html_body, 'html'))

        server = smtplib.SMTP(SMTP_SERVER, SMTP_PORT, timeout=15)
        try:
            server.starttls()
            server.login(SMTP_USERNAME, SMTP_PASSWORD)
            server.sendmail(SMTP_USERNAME, to_email, msg.as_string())
        finally:
            _close(server)

        logger.info(f"✅ Email sent to {to_email} with subject: '{subject}'")
        return NotificationResult(delivered=True)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"❌ Email sending failed: {e}")
        return NotificationResult(delivered=False, reason=str(e))

def format_long_date(value: date) -> str:
    """June 1, 2025"""
    return f"{value:%B} {value.day}, {value.year}"

def render_rejection_email(booking: Booking, config: Dict[str, Any]) -> Tuple[str, str]:
    """
    Builds the (subject, html) pair sent to the requestor when a booking is rejected.
    """
    venue_name = escape(config.get("venue_name", "our venue"))
    contact_phone = escape(config.get("contact_phone", ""))
    subject = get_notification_settings(config).get("rejection_subject", DEFAULT_REJECTION_SUBJECT)

    contact_line = (
        f"<p>We apologize for any inconvenience. Please feel free to contact us at "
        f"<strong>{contact_phone}</strong> to check availability for alternative dates or discuss other options.</p>"
        if contact_phone else
        "<p>We apologize for any inconvenience. Please reply to this email to check availability for alternative dates.</p>"
    )

    html_body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #dc2626;">Booking Request - Unable to Confirm</h2>
            <p>Dear {escape(booking.name)},</p>
            <p>Thank you for your interest in {venue_name}.</p>
            <p><strong>Unfortunately, we are unable to confirm your booking request.</strong></p>

            <div style="background-color: #fee2e2; border-left: 4px solid #dc2626; padding: 15px; margin: 20px 0;">
                <h3 style="margin-top: 0; color: #991b1b;">Reason:</h3>
                <p style="margin: 5px 0; font-size: 16px;"><strong>{escape(booking.rejection_reason or "")}</strong></p>
            </div>

            <div style="background-color: #f3f4f6; padding: 15px; margin: 20px 0; border-radius: 8px;">
                <h3 style="margin-top: 0; color: #374151;">Your Booking Details:</h3>
                <p style="margin: 5px 0;"><strong>From:</strong> {format_long_date(booking.from_date)}</p>
                <p style="margin: 5px 0;"><strong>To:</strong> {format_long_date(booking.to_date)}</p>
                <p style="margin: 5px 0;"><strong>Event Type:</strong> {escape(booking.event_type)}</p>
                <p style="margin: 5px 0;"><strong>Guests:</strong> {booking.guests}</p>
                <p style="margin: 5px 0;"><strong>Phone:</strong> {escape(booking.phone)}</p>
            </div>

            {contact_line}

            <p style="margin-top: 30px;">Best regards,<br><strong>{venue_name} Team</strong></p>
        </div>
    """
    return subject, html_body

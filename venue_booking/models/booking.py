from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def normalize_email(email: str) -> str:
    return email.strip().lower()

def ranges_overlap(a_from: date, a_to: date, b_from: date, b_to: date) -> bool:
    """Closed-interval overlap: ranges sharing a boundary day overlap."""
    return a_from <= b_to and a_to >= b_from

class Booking(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)

    # Requestor
    name: str
    email: str
    phone: str
    message: Optional[str] = None

    # Event
    event_type: str
    guests: int
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    from_date: date
    to_date: date

    status: BookingStatus = BookingStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    confirmed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    source_address: Optional[str] = None

    def overlaps(self, from_date: date, to_date: date) -> bool:
        return ranges_overlap(self.from_date, self.to_date, from_date, to_date)

# --- Request / Response Models ---

class BookingRequest(BaseModel):
    """Public submission payload."""
    name: str = Field(..., min_length=1)
    email: str
    phone: str = Field(..., min_length=1)
    event_type: str = Field(..., min_length=1)
    guests: int = Field(..., ge=1)
    from_date: date
    to_date: date
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    message: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = normalize_email(value)
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("Please provide a valid email address")
        return value

    @model_validator(mode="after")
    def check_date_order(self):
        if self.from_date > self.to_date:
            raise ValueError("From date must be on or before to date")
        return self

class BlockedRange(BaseModel):
    from_date: date
    to_date: date

class RejectRequest(BaseModel):
    reason: Optional[str] = None

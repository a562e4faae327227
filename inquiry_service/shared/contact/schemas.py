"""Pydantic schemas for contact API."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inquiry_service.shared.security.input_validation import (
    MAX_FULL_NAME_LENGTH,
    MAX_MESSAGE_LENGTH,
    MIN_FULL_NAME_LENGTH,
    guest_count_provided,
    parse_event_date,
    sanitize_text,
    validate_email,
    validate_event_type,
    validate_guest_count,
    validate_phone,
)

REQUIRED_FIELDS = ("fullName", "email", "eventType")


class ContactRequest(BaseModel):
    """Schema for contact form submission. Free-text fields come out sanitized."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: str = Field(..., alias="fullName")
    email: str
    phone: Optional[str] = None
    event_type: str = Field(..., alias="eventType")
    event_date: Optional[date] = Field(None, alias="eventDate")
    guest_count: Optional[str] = Field(None, alias="guestCount")
    message: Optional[str] = None

    @field_validator("full_name", mode="before")
    @classmethod
    def validate_full_name(cls, v: Any) -> str:
        cleaned = sanitize_text(v) if isinstance(v, str) else ""
        if not MIN_FULL_NAME_LENGTH <= len(cleaned) <= MAX_FULL_NAME_LENGTH:
            raise ValueError(
                f"Full name must be between {MIN_FULL_NAME_LENGTH} and {MAX_FULL_NAME_LENGTH} characters."
            )
        return cleaned

    @field_validator("email", mode="before")
    @classmethod
    def validate_email_field(cls, v: Any) -> str:
        if not isinstance(v, str) or not validate_email(v.strip()):
            raise ValueError("Please provide a valid email address.")
        return sanitize_text(v.strip().lower())

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone_field(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        if not validate_phone(v):
            raise ValueError("Please provide a valid phone number.")
        return sanitize_text(v)

    @field_validator("event_type", mode="before")
    @classmethod
    def validate_event_type_field(cls, v: Any) -> str:
        if not validate_event_type(v):
            raise ValueError("Please select a valid event type.")
        return v.strip().lower()

    @field_validator("event_date", mode="before")
    @classmethod
    def validate_event_date(cls, v: Any) -> Optional[date]:
        if v is None or v == "":
            return None
        parsed = parse_event_date(v)
        if parsed is None:
            raise ValueError("Please provide a valid event date.")
        return parsed

    @field_validator("guest_count", mode="before")
    @classmethod
    def validate_guest_count_field(cls, v: Any) -> Optional[str]:
        if not guest_count_provided(v):
            return None
        if not validate_guest_count(v):
            raise ValueError("Guest count must be between 1 and 10,000.")
        return str(v).strip()

    @field_validator("message", mode="before")
    @classmethod
    def validate_message(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        if not isinstance(v, str) or len(v) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message must not exceed {MAX_MESSAGE_LENGTH} characters.")
        return sanitize_text(v, max_length=MAX_MESSAGE_LENGTH) or None


class ContactResponse(BaseModel):
    """Schema for contact form response."""
    success: bool
    id: int


class SubmissionOut(BaseModel):
    """A stored submission as shown to the admin."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    event_type: str
    event_date: Optional[date] = None
    guest_count: Optional[str] = None
    message: Optional[str] = None
    created_at: datetime

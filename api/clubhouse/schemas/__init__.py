"""Pydantic schemas for API serialisation."""

import datetime as dt
import re
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from clubhouse.models.booking import BookingStatus, PaymentStatus
from clubhouse.models.court import CourtType
from clubhouse.models.member import MembershipType, SkillLevel, UserRole
from clubhouse.services.booking_rules import normalise_hhmm, to_minutes

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}\Z")

# --- Auth ---


class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    phone: str = Field(min_length=10)
    membership_type: MembershipType = MembershipType.BASIC
    skill_level: SkillLevel = SkillLevel.BEGINNER


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserSummary(BaseModel):
    user_id: str
    first_name: str
    last_name: str
    email: str
    membership_type: MembershipType
    role: UserRole


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserSummary


class CallerOut(BaseModel):
    user_id: str
    email: str
    role: UserRole


# --- Users ---


class ProfileOut(BaseModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    phone: str
    membership_type: MembershipType
    membership_expiry: dt.datetime
    skill_level: SkillLevel
    role: UserRole
    is_active: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    phone: str | None = Field(default=None, min_length=10)
    skill_level: SkillLevel | None = None


# --- Courts ---


class CourtCreate(BaseModel):
    name: str = Field(min_length=1)
    type: CourtType
    hourly_rate: Decimal = Field(gt=0)
    description: str | None = None


class CourtOut(BaseModel):
    court_id: str
    name: str
    type: CourtType
    hourly_rate: Decimal
    is_active: bool
    description: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime


# --- Slots ---


class SlotRequest(BaseModel):
    """A date plus a same-day [start_time, end_time) range.

    The date stays a string because it is used verbatim in index keys, but it
    must be a real YYYY-MM-DD date. Times are normalised to zero-padded HH:MM.
    """

    date: str
    start_time: str
    end_time: str

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str) -> str:
        # fromisoformat also takes week and ordinal dates; only calendar dates may become keys
        try:
            if not _DATE_RE.match(value):
                raise ValueError
            return dt.date.fromisoformat(value).isoformat()
        except ValueError:
            raise ValueError("Date must be in YYYY-MM-DD format") from None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time(cls, value: str) -> str:
        return normalise_hhmm(value)

    @model_validator(mode="after")
    def check_time_range(self):
        if to_minutes(self.end_time) <= to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class AvailabilityOut(BaseModel):
    court_id: str
    date: str
    start_time: str
    end_time: str
    available: bool


# --- Bookings ---


class BookingCreate(SlotRequest):
    court_id: str = Field(min_length=1)
    notes: str | None = None


class BookingOut(BaseModel):
    booking_id: str
    court_id: str
    user_id: str
    date: str
    start_time: str
    end_time: str
    total_amount: Decimal
    status: BookingStatus
    payment_status: PaymentStatus
    notes: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime

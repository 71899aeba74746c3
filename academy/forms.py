from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional
import re

from academy.memberships import GENDERS, PAYMENT_METHODS, SUBSCRIPTION_PLANS, ZONES


MEMBER_FIELDS = [
    "full_name",
    "gender",
    "phone_number",
    "subscription_plan",
    "zone",
]


@dataclass
class PaymentEntry:
    payment_method: str = ""
    amount: Optional[float] = None

    @property
    def is_filled(self) -> bool:
        return bool(self.payment_method) and self.amount not in (None, "")


@dataclass
class MemberRegistration:
    full_name: str = ""
    gender: str = ""
    phone_number: str = ""
    date_of_birth: Optional[date] = None
    subscription_plan: str = ""
    zone: str = ""
    notes: str = ""
    payments: List[PaymentEntry] = field(default_factory=lambda: [PaymentEntry()])

    def missing_fields(self) -> List[str]:
        return [f for f in MEMBER_FIELDS if getattr(self, f, None) in (None, "")]

    def valid_payments(self) -> List[PaymentEntry]:
        return [p for p in self.payments if p.is_filled]

    def total_paid(self) -> float:
        return sum(float(p.amount) for p in self.valid_payments())

    def validate(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}

        if len(self.full_name.strip()) < 2:
            errors["full_name"] = "Invalid name. Please provide the full name."
        if self.gender not in GENDERS:
            errors["gender"] = "Please select a gender."
        if not validate_phone(self.phone_number):
            errors["phone_number"] = "Invalid phone number. Please enter a valid mobile number."
        if self.subscription_plan not in SUBSCRIPTION_PLANS:
            errors["subscription_plan"] = "Please select a subscription plan."
        if self.zone not in ZONES:
            errors["zone"] = "Please select a zone."
        if self.date_of_birth and self.date_of_birth > date.today():
            errors["date_of_birth"] = "Date of birth cannot be in the future."

        payments = self.valid_payments()
        if not payments:
            errors["payments"] = "Please add at least one payment"
        for p in payments:
            if p.payment_method not in PAYMENT_METHODS:
                errors["payments"] = f"Unknown payment method: {p.payment_method}"
            elif float(p.amount) <= 0:
                errors["payments"] = "Payment amounts must be positive."

        return errors

    def member_payload(self) -> Dict[str, Any]:
        return {
            "full_name": self.full_name.strip(),
            "gender": self.gender,
            "phone_number": self.phone_number.strip(),
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "notes": self.notes or None,
        }


@dataclass
class SessionForm:
    title: str = ""
    session_type: str = ""
    session_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    coach_id: Optional[str] = None
    max_capacity: int = 10
    zone: Optional[str] = None
    notes: str = ""

    def validate(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not self.title.strip():
            errors["title"] = "Title is required."
        if not self.session_type:
            errors["session_type"] = "Session type is required."
        if self.session_date is None:
            errors["session_date"] = "Date is required."
        if self.start_time is None or self.end_time is None:
            errors["time"] = "Start and end time are required."
        elif self.start_time >= self.end_time:
            errors["time"] = "End time must be after start time."
        if self.max_capacity < 1:
            errors["max_capacity"] = "Capacity must be at least 1."
        return errors

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title.strip(),
            "session_type": self.session_type,
            "session_date": self.session_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "coach_id": self.coach_id or None,
            "max_capacity": self.max_capacity,
            "zone": self.zone or None,
            "notes": self.notes or None,
        }


# ----------------- VALIDATORS ------------------------

def validate_phone(phone: str) -> bool:
    digits = re.sub(r"\D", "", phone or "")
    return 7 <= len(digits) <= 15


def parse_time_str(val: str) -> Optional[time]:
    if not val:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(val.strip(), fmt).time()
        except ValueError:
            continue
    return None

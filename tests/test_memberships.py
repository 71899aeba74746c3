"""Tests for membership date arithmetic, status and filtering."""
from datetime import date, datetime, timezone
import random

import pytest

from academy.memberships import (
    calculate_expiry_date,
    days_until,
    expiring_services,
    extended_expiry,
    filter_members,
    generate_barcode,
    generate_member_id,
    is_birthday,
    member_stats,
    member_status,
    reminder_message,
    service_status,
    week_days,
    whatsapp_url,
)

TODAY = date(2026, 10, 17)


def _svc(expiry, zone="gym", is_active=True, freeze_status=None):
    return {"expiry_date": expiry, "zone": zone, "is_active": is_active, "freeze_status": freeze_status}


def _member(mid, name, services, created_at="2026-01-01", phone="0501234567", member_id="AS1000"):
    return {
        "id": mid,
        "full_name": name,
        "member_id": member_id,
        "phone_number": phone,
        "created_at": created_at,
        "member_services": services,
    }


@pytest.mark.parametrize("plan,expected", [
    ("1_day", date(2026, 2, 1)),
    ("1_month", date(2026, 2, 28)),
    ("2_months", date(2026, 3, 31)),
    ("3_months", date(2026, 4, 30)),
    ("6_months", date(2026, 7, 31)),
    ("1_year", date(2027, 1, 31)),
])
def test_calculate_expiry_date_clamps_to_month_end(plan, expected):
    assert calculate_expiry_date(date(2026, 1, 31), plan) == expected


def test_calculate_expiry_date_leap_day_year_plan():
    assert calculate_expiry_date(date(2028, 2, 29), "1_year") == date(2029, 2, 28)


def test_calculate_expiry_date_unknown_plan():
    with pytest.raises(ValueError):
        calculate_expiry_date(TODAY, "forever")


def test_days_until_accepts_strings_and_goes_negative():
    assert days_until("2026-10-24", TODAY) == 7
    assert days_until("2026-10-10", TODAY) == -7


def test_service_status():
    assert service_status(_svc("2026-12-01"), TODAY) == "active"
    assert service_status(_svc("2026-10-24"), TODAY) == "expiring"
    assert service_status(_svc("2026-10-17"), TODAY) == "expiring"
    assert service_status(_svc("2026-10-16"), TODAY) == "expired"
    assert service_status(_svc("2026-12-01", is_active=False), TODAY) == "inactive"
    assert service_status(_svc("2026-12-01", freeze_status="frozen"), TODAY) == "frozen"
    assert service_status(_svc("2026-12-01", is_active=False, freeze_status="suspended"), TODAY) == "suspended"


def test_member_status_prefers_best_service():
    member = _member("1", "A", [_svc("2026-01-01"), _svc("2026-10-20"), _svc("2026-12-01", freeze_status="frozen")])
    assert member_status(member, TODAY) == "expiring"
    assert member_status(_member("2", "B", []), TODAY) == "expired"


def test_filter_members_search_zone_status_and_sort():
    members = [
        _member("1", "Zaid Hassan", [_svc("2026-12-01", zone="swimming")], created_at="2026-03-01", member_id="AS2001"),
        _member("2", "amira Khalid", [_svc("2026-10-20", zone="gym")], created_at="2026-05-01", phone="0559998888"),
        _member("3", "Omar Saleh", [_svc("2026-09-01", zone="gym")], created_at="2026-04-01"),
        _member("4", "No Service", [], created_at="2026-06-01"),
    ]

    assert [m["id"] for m in filter_members(members, TODAY)] == ["4", "2", "3", "1"]
    assert [m["id"] for m in filter_members(members, TODAY, search="AS2001")] == ["1"]
    assert [m["id"] for m in filter_members(members, TODAY, search="  9998 ")] == ["2"]
    assert [m["id"] for m in filter_members(members, TODAY, zone="gym", sort_by="name")] == ["2", "3"]
    assert [m["id"] for m in filter_members(members, TODAY, status="expired")] == ["4", "3"]
    assert [m["id"] for m in filter_members(members, TODAY, sort_by="expiry")] == ["3", "2", "1", "4"]
    assert [m["id"] for m in filter_members(members, TODAY, sort_by="expiry_desc")] == ["1", "2", "3", "4"]


def test_filter_members_filters_are_keyword_only():
    members = [_member("1", "Zaid Hassan", [_svc("2026-12-01")])]
    with pytest.raises(TypeError):
        filter_members(members, TODAY, "Zaid")


def test_member_stats():
    members = [
        _member("1", "A", [_svc("2026-12-01")]),
        _member("2", "B", [_svc("2026-10-20")]),
        _member("3", "C", [_svc("2026-09-01")]),
        _member("4", "D", [_svc("2026-12-01", freeze_status="frozen")]),
    ]
    assert member_stats(members, TODAY) == {"total": 4, "active": 1, "expiring_soon": 1, "expired": 1}


def test_expiring_services_window_and_order():
    members = [
        _member("1", "A", [_svc("2026-11-10"), _svc("2026-10-17")]),
        _member("2", "B", [_svc("2026-10-19"), _svc("2026-10-18", is_active=False)]),
        _member("3", "C", [_svc("2026-12-30")]),
    ]
    result = expiring_services(members, TODAY)
    assert [(e["id"], e["days_until_expiry"]) for e in result] == [("2", 2), ("1", 24)]


def test_expiring_services_skips_frozen_and_suspended():
    members = [
        _member("1", "A", [_svc("2026-10-20", freeze_status="frozen")]),
        _member("2", "B", [_svc("2026-10-21", freeze_status="suspended")]),
        _member("3", "C", [_svc("2026-10-22")]),
    ]
    assert [e["id"] for e in expiring_services(members, TODAY)] == ["3"]


def test_extended_expiry_adds_freeze_length():
    assert extended_expiry("2026-11-01", "2026-10-03", "2026-10-17") == date(2026, 11, 15)


def test_is_birthday_handles_leap_day():
    assert is_birthday("1990-10-17", TODAY)
    assert not is_birthday("1990-10-18", TODAY)
    assert not is_birthday(None, TODAY)
    assert is_birthday("2000-02-29", date(2027, 2, 28))
    assert not is_birthday("2000-02-29", date(2028, 2, 28))
    assert is_birthday("2000-02-29", date(2028, 2, 29))


def test_week_days_start_on_sunday():
    days = week_days(TODAY)  # a Saturday
    assert days[0] == date(2026, 10, 11)
    assert days[-1] == TODAY
    assert week_days(date(2026, 10, 11))[0] == date(2026, 10, 11)


def test_generated_ids():
    assert generate_member_id(random.Random(1)).startswith("AS")
    assert len(generate_member_id()) == 6
    now = datetime(2026, 10, 17, tzinfo=timezone.utc)
    assert generate_barcode(now) == f"ASA{int(now.timestamp() * 1000)}"


def test_reminder_message_and_whatsapp_url():
    text = reminder_message("Sara", "AS1234", 1, "2026-10-18", academy_name="Asatheer Sports Academy")
    assert "expire in 1 day on 18/10/2026" in text
    assert "Asatheer Sports Academy" in text
    assert "2 days" in reminder_message("Sara", "AS1234", 2, "2026-10-19")

    url = whatsapp_url("+971 50-123", "hi there")
    assert url == "https://wa.me/97150123?text=hi%20there"

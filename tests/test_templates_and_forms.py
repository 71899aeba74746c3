"""Tests for template rendering and form validation."""
from datetime import date, time

from academy.forms import MemberRegistration, PaymentEntry, SessionForm, parse_time_str, validate_phone
from academy.notifications.templates import placeholders, render_template


def test_render_template_replaces_every_occurrence():
    text = render_template("{{member_name}}! Yes, {{ member_name }}.", {"member_name": "Sara"})
    assert text == "Sara! Yes, Sara."


def test_render_template_leaves_unknown_placeholders():
    text = render_template("Hi {{member_name}}, see you at {{branch}}", {"member_name": "Omar", "branch": None})
    assert text == "Hi Omar, see you at {{branch}}"


def test_render_template_stringifies_values():
    assert render_template("{{days_until_expiry}} days", {"days_until_expiry": 3}) == "3 days"
    assert render_template(None, {}) == ""


def test_placeholders():
    assert placeholders("{{a}} and {{ b }} and {{a}}") == {"a", "b"}


def _registration(**overrides):
    data = dict(
        full_name="Sara Ali",
        gender="female",
        phone_number="+971 50 123 4567",
        subscription_plan="1_month",
        zone="gym",
        payments=[PaymentEntry("cash", 200.0), PaymentEntry("card", 150.0), PaymentEntry()],
    )
    data.update(overrides)
    return MemberRegistration(**data)


def test_valid_registration():
    form = _registration()
    assert form.validate() == {}
    assert form.total_paid() == 350.0
    assert len(form.valid_payments()) == 2
    assert form.missing_fields() == []


def test_registration_errors():
    form = _registration(full_name="S", gender="", phone_number="12", zone="moon", payments=[PaymentEntry()])
    errors = form.validate()
    assert set(errors) == {"full_name", "gender", "phone_number", "zone", "payments"}
    assert errors["payments"] == "Please add at least one payment"
    assert form.missing_fields() == ["gender"]


def test_registration_rejects_bad_payment_values():
    assert "payments" in _registration(payments=[PaymentEntry("crypto", 10)]).validate()
    assert "payments" in _registration(payments=[PaymentEntry("cash", 0)]).validate()


def test_member_payload_normalises_optional_fields():
    payload = _registration(date_of_birth=date(1995, 10, 17), notes="").member_payload()
    assert payload["date_of_birth"] == "1995-10-17"
    assert payload["notes"] is None


def test_session_form_validation():
    form = SessionForm(
        title="Football 5v5",
        session_type="class",
        session_date=date(2026, 10, 18),
        start_time=time(18, 0),
        end_time=time(19, 0),
    )
    assert form.validate() == {}
    assert form.to_payload()["start_time"] == "18:00"
    assert form.to_payload()["coach_id"] is None

    form.end_time = time(17, 0)
    form.max_capacity = 0
    assert set(form.validate()) == {"time", "max_capacity"}


def test_phone_and_time_parsing():
    assert validate_phone("050-123-4567")
    assert not validate_phone("")
    assert parse_time_str("07:30") == time(7, 30)
    assert parse_time_str("07:30:15") == time(7, 30, 15)
    assert parse_time_str("7pm") is None

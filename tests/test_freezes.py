"""Tests for auto-resuming frozen memberships."""
from academy.freezes import resume_expired_freezes


def _freeze(freeze_id, service_id, start, end, status="active", action_type="freeze"):
    return {
        "id": freeze_id,
        "member_id": "m1",
        "service_id": service_id,
        "action_type": action_type,
        "freeze_start": start,
        "freeze_end": end,
        "status": status,
        "reason": "travel",
        "notes": None,
    }


def _db(make_db, freezes, services=None):
    return make_db(
        members=[{"id": "m1", "full_name": "Sara Ali", "member_id": "AS1234"}],
        member_services=services if services is not None else [{
            "id": "s1",
            "member_id": "m1",
            "zone": "gym",
            "subscription_plan": "3_months",
            "expiry_date": "2026-11-01",
            "freeze_status": "frozen",
            "is_active": True,
        }],
        membership_freezes=freezes,
    )


def test_resumes_freeze_and_extends_expiry(make_db, now):
    db = _db(make_db, [_freeze("f1", "s1", "2026-10-03", "2026-10-17")])

    results = resume_expired_freezes(db, now)

    assert results["resumed"] == 1
    assert results["failed"] == 0
    assert results["message"] == "Processed 1 memberships. 1 resumed, 0 failed."
    assert results["results"][0] == {
        "freeze_id": "f1",
        "success": True,
        "member_name": "Sara Ali",
        "freeze_duration_days": 14,
        "new_expiry": "2026-11-15",
    }

    service = db.rows("member_services")[0]
    assert service["expiry_date"] == "2026-11-15"
    assert service["freeze_status"] is None

    freeze = db.rows("membership_freezes")[0]
    assert freeze["status"] == "completed"
    assert freeze["resumed_by"] == "system-auto"
    assert freeze["resumed_at"] == now.isoformat()

    audit = db.rows("financial_audit_trail")
    assert len(audit) == 1
    assert audit[0]["action_type"] == "auto_resume"
    assert "Expiry extended from 2026-11-01 to 2026-11-15" in audit[0]["description"]


def test_ignores_future_completed_and_suspensions(make_db, now):
    db = _db(make_db, [
        _freeze("future", "s1", "2026-10-10", "2026-10-20"),
        _freeze("done", "s1", "2026-09-01", "2026-09-10", status="completed"),
        _freeze("susp", "s1", "2026-09-01", None, action_type="suspend"),
    ])

    results = resume_expired_freezes(db, now)

    assert results == {"message": "No memberships to resume", "resumed": 0, "failed": 0, "results": []}
    assert db.rows("member_services")[0]["expiry_date"] == "2026-11-01"


def test_missing_service_is_reported(make_db, now):
    db = _db(make_db, [_freeze("f1", "gone", "2026-10-01", "2026-10-10")])

    results = resume_expired_freezes(db, now)

    assert results["failed"] == 1
    assert results["results"][0] == {"freeze_id": "f1", "success": False, "error": "Service not found"}
    assert db.rows("membership_freezes")[0]["status"] == "active"


def test_update_error_is_collected_not_raised(make_db, now):
    db = _db(make_db, [_freeze("f1", "s1", "2026-10-01", "2026-10-10")])
    db.fail("member_services", "update", message="permission denied")

    results = resume_expired_freezes(db, now)

    assert results["failed"] == 1
    assert "permission denied" in results["results"][0]["error"]


def test_audit_failure_is_only_a_warning(make_db, now):
    db = _db(make_db, [_freeze("f1", "s1", "2026-10-01", "2026-10-10")])
    db.fail("financial_audit_trail", "insert")

    results = resume_expired_freezes(db, now)

    assert results["resumed"] == 1
    assert db.rows("financial_audit_trail") == []

"""Tests for submitter session resolution (entry flow)."""
from datetime import datetime, timedelta

from app.registry.modules.submitters.models import SubmitterSession as SubmitterSessionRow
from app.registry.modules.submitters.service import (
    SessionOutcome,
    get_current_session,
    resolve_session,
    validate_submitter_entry,
)
from app.registry.store import RecordStore, StoreError
from conftest import with_csrf

T0 = datetime(2026, 3, 1, 9, 0, 0)


class BrokenStore(RecordStore):
    """Every call fails."""

    def select(self, table, **kwargs):
        raise StoreError("connection refused")

    def insert(self, table, rows):
        raise StoreError("connection refused")

    def update(self, table, row_id, values):
        raise StoreError("connection refused")


class UpdateFailsStore(RecordStore):
    def __init__(self, row):
        self.row = row

    def select(self, table, **kwargs):
        return [dict(self.row)]

    def update(self, table, row_id, values):
        raise StoreError("permission denied")


def test_first_entry_creates_session(sql_store):
    res = resolve_session(sql_store, "  Ravi Kumar ", " 9876543210 ", now=T0)
    assert res.outcome is SessionOutcome.CREATED
    assert not res.is_fallback
    assert res.session.id is not None
    assert res.session.submitter_name == "Ravi Kumar"
    assert res.session.submitter_mobile == "9876543210"
    assert res.session.created_at == T0
    assert res.session.last_active_at == T0


def test_repeat_entry_resolves_same_session(sql_store):
    first = resolve_session(sql_store, "Ravi Kumar", "9876543210", now=T0)
    later = T0 + timedelta(hours=2)
    second = resolve_session(sql_store, "Ravi Kumar", "9876543210", now=later)

    assert second.outcome is SessionOutcome.RESOLVED
    assert second.session.id == first.session.id
    assert second.session.last_active_at >= first.session.last_active_at
    assert second.session.last_active_at == later
    assert len(sql_store.select("submitter_sessions")) == 1


def test_identity_is_case_sensitive(sql_store):
    a = resolve_session(sql_store, "Ravi Kumar", "9876543210", now=T0)
    b = resolve_session(sql_store, "ravi kumar", "9876543210", now=T0)
    assert b.outcome is SessionOutcome.CREATED
    assert a.session.id != b.session.id


def test_most_recently_active_row_wins(sql_store):
    sql_store.insert(
        "submitter_sessions",
        [
            {"submitter_name": "Ravi Kumar", "submitter_mobile": "9876543210", "created_at": T0, "last_active_at": T0},
            {
                "submitter_name": "Ravi Kumar",
                "submitter_mobile": "9876543210",
                "created_at": T0,
                "last_active_at": T0 + timedelta(days=1),
            },
        ],
    )
    res = resolve_session(sql_store, "Ravi Kumar", "9876543210", now=T0 + timedelta(days=2))
    assert res.outcome is SessionOutcome.RESOLVED
    assert res.session.id == 2


def test_missing_sessions_table_falls_back(sql_store):
    SubmitterSessionRow.__table__.drop(sql_store.engine)
    res = resolve_session(sql_store, "Ravi Kumar", "9876543210", now=T0)
    assert res.outcome is SessionOutcome.FALLBACK
    assert res.session.id is None
    assert res.session.is_transient
    assert res.session.submitter_name == "Ravi Kumar"
    assert res.error


def test_no_store_falls_back():
    res = resolve_session(None, "Ravi Kumar", "9876543210")
    assert res.is_fallback
    assert res.session.submitter_mobile == "9876543210"


def test_store_errors_fall_back():
    res = resolve_session(BrokenStore(), "Ravi Kumar", "9876543210")
    assert res.outcome is SessionOutcome.FALLBACK
    assert "connection refused" in res.error


def test_failed_touch_keeps_existing_row():
    row = {"id": 7, "submitter_name": "Ravi Kumar", "submitter_mobile": "9876543210", "created_at": T0, "last_active_at": T0}
    res = resolve_session(UpdateFailsStore(row), "Ravi Kumar", "9876543210", now=T0 + timedelta(hours=1))
    assert res.outcome is SessionOutcome.RESOLVED
    assert res.session.id == 7
    assert res.session.last_active_at == T0


def test_get_current_session_reads_sessions_table(sql_store):
    created = resolve_session(sql_store, "Ravi Kumar", "9876543210", now=T0)
    current = get_current_session(sql_store, "Ravi Kumar", "9876543210")
    assert current is not None
    assert current.id == created.session.id


def test_get_current_session_falls_back_to_profiles(sql_store):
    SubmitterSessionRow.__table__.drop(sql_store.engine)
    sql_store.insert(
        "profiles",
        {
            "name": "Meera",
            "relation": "Daughter",
            "dob": "2001-01-01",
            "nakshatra": "Revati",
            "rashi": "Meen (Pisces)",
            "occupation": "Student",
            "address": "4 Lake View, Mysuru",
            "submitter_name": "Ravi Kumar",
            "submitter_mobile": "9876543210",
        },
    )
    current = get_current_session(sql_store, "Ravi Kumar", "9876543210")
    assert current is not None
    assert current.is_transient
    assert current.submitter_name == "Ravi Kumar"

    assert get_current_session(sql_store, "Someone Else", "9000000000") is None
    assert get_current_session(None, "Ravi Kumar", "9876543210") is None


def test_validate_submitter_entry():
    assert validate_submitter_entry("Ravi Kumar", "+91 98765 43210") == []
    assert [e.field for e in validate_submitter_entry("", "")] == ["name", "mobile"]
    errs = validate_submitter_entry("Ravi Kumar", "98765")
    assert errs[0].message == "Please enter a valid mobile number (at least 10 digits)"


def test_enter_stores_submitter_in_session(client):
    r = client.post("/enter", data=with_csrf(client, {"name": "Ravi Kumar", "mobile": "9876543210"}))
    assert r.status_code == 302
    with client.session_transaction() as sess:
        assert sess["submitter_name"] == "Ravi Kumar"
        assert sess["submitter_mobile"] == "9876543210"
        assert sess["submitter_outcome"] == "created"
        assert sess["submitter_session_id"] is not None

    r = client.get("/")
    assert b"Submission Form" in r.data
    assert b"Ravi Kumar" in r.data


def test_enter_without_sessions_table_still_continues(client, app):
    SubmitterSessionRow.__table__.drop(app.extensions["sqlalchemy_engine"])
    r = client.post(
        "/enter",
        data=with_csrf(client, {"name": "Ravi Kumar", "mobile": "9876543210"}),
        follow_redirects=True,
    )
    assert b"Continuing without a saved session." in r.data
    assert b"Submission Form" in r.data
    with client.session_transaction() as sess:
        assert sess["submitter_outcome"] == "fallback"
        assert sess["submitter_session_id"] is None


def test_enter_rejects_short_mobile(client):
    r = client.post("/enter", data=with_csrf(client, {"name": "Ravi Kumar", "mobile": "12345"}), follow_redirects=True)
    assert b"at least 10 digits" in r.data
    with client.session_transaction() as sess:
        assert "submitter_name" not in sess


def test_exit_clears_submitter(client):
    client.post("/enter", data=with_csrf(client, {"name": "Ravi Kumar", "mobile": "9876543210"}))
    client.post("/exit", data=with_csrf(client, {}))
    with client.session_transaction() as sess:
        assert "submitter_name" not in sess
    assert b"Please enter your details to continue" in client.get("/").data


class RecordingStore(RecordStore):
    def __init__(self):
        self.inserted = []

    def select(self, table, **kwargs):
        return []

    def insert(self, table, rows):
        self.inserted.append(dict(rows))
        return [{"id": 1, **rows}]


def test_new_session_timestamps_are_utc_aware():
    store = RecordingStore()
    res = resolve_session(store, "Ravi Kumar", "9876543210")
    assert res.outcome is SessionOutcome.CREATED
    ts = store.inserted[0]["last_active_at"]
    assert ts.tzinfo is not None
    assert ts.utcoffset() == timedelta(0)


def test_get_current_session_bad_timestamp_is_none():
    row = {"id": 3, "submitter_name": "Ravi Kumar", "submitter_mobile": "9876543210", "last_active_at": "yesterday"}
    assert get_current_session(UpdateFailsStore(row), "Ravi Kumar", "9876543210") is None

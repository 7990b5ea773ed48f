"""Tests for the submitter report script."""
import pytest
from sqlalchemy import create_engine

from app.registry.models import Base
from app.registry.store import SqlRecordStore
from scripts import list_submitters
from scripts._db_utils import script_record_store

BASE = {
    "relation": "Son",
    "dob": "1990-05-14",
    "nakshatra": "Rohini",
    "rashi": "Vrishabh (Taurus)",
    "occupation": "Engineer",
    "address": "12 Temple Road, Udupi",
}


@pytest.fixture()
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path/'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("RECORD_STORE_BACKEND", "sql")
    engine = create_engine(url, future=True)
    Base.metadata.create_all(bind=engine)
    SqlRecordStore(engine).insert(
        "profiles",
        [
            {**BASE, "name": "Aarav", "submitter_name": "Ravi Kumar", "submitter_mobile": "+91 98765 43210"},
            {**BASE, "name": "Diya", "submitter_name": "Ravi Kumar", "submitter_mobile": "+91 98765 43210"},
        ],
    )
    engine.dispose()
    return url


def test_lists_submitters(db_url, capsys):
    assert list_submitters.main([]) == 0
    out = capsys.readouterr().out
    assert "1 submitter(s)" in out
    assert "Ravi Kumar" in out


def test_lookup_by_mobile(db_url, capsys):
    assert list_submitters.main(["--mobile", "9876543210"]) == 0
    out = capsys.readouterr().out
    assert "Records by Ravi Kumar (normalized match)" in out
    assert out.index("Aarav") < out.index("Diya")


def test_invalid_mobile(db_url, capsys):
    assert list_submitters.main(["--mobile", "undefined"]) == 2


def test_no_backend(monkeypatch, capsys):
    monkeypatch.setenv("RECORD_STORE_BACKEND", "none")
    assert list_submitters.main([]) == 1
    assert "Database not configured" in capsys.readouterr().out


def test_script_record_store_sql(db_url):
    with script_record_store({"RECORD_STORE_BACKEND": "sql", "DATABASE_URL": db_url}) as store:
        assert isinstance(store, SqlRecordStore)
        assert len(store.select("profiles")) == 2

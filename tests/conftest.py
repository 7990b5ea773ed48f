import pytest
from sqlalchemy import create_engine
from werkzeug.security import generate_password_hash

from app.registry import create_app
from app.registry.constants import PERMISSIONS
from app.registry.db import session_scope
from app.registry.models import Base, Permission, Role, User
from app.registry.store import SqlRecordStore

CSRF = "test-csrf-token"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("RECORD_STORE_BACKEND", "sql")
    for k in ("RECORD_STORE_URL", "RECORD_STORE_API_KEY"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        perms = {key: Permission(key=key, name=name) for key, name in PERMISSIONS}
        admin = Role(key="admin", name="Administrator")
        admin.permissions.extend(perms.values())
        viewer = Role(key="viewer", name="Viewer")
        viewer.permissions.append(perms["admin.view"])

        u = User(email="admin@example.com", password_hash=generate_password_hash("pw"), is_active=True)
        u.roles.append(admin)
        v = User(email="viewer@example.com", password_hash=generate_password_hash("pw"), is_active=True)
        v.roles.append(viewer)
        s.add_all([*perms.values(), admin, viewer, u, v])

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def sql_store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path/'store.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    yield SqlRecordStore(engine)
    engine.dispose()


def login(client, email="admin@example.com", password="pw"):
    return client.post("/auth/login", data={"email": email, "password": password}, follow_redirects=False)


def with_csrf(client, data: dict) -> dict:
    with client.session_transaction() as sess:
        sess["csrf_token"] = CSRF
    return {**data, "csrf_token": CSRF}


def profile_form(**overrides) -> dict:
    data = {
        "name": "Aarav Sharma",
        "relation": "Son",
        "dob": "1990-05-14",
        "nakshatra": "Rohini",
        "rashi": "Vrishabh (Taurus)",
        "contact_number": "",
        "occupation": "Engineer",
        "address": "12 Temple Road, Udupi",
    }
    data.update(overrides)
    return data

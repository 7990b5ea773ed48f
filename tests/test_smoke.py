from conftest import login, with_csrf


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_index_shows_entry_form(client):
    r = client.get("/")
    assert r.status_code == 200
    assert b"Please enter your details to continue" in r.data


def test_login_and_admin_access(client):
    # Anonymous is sent to the login page
    r = client.get("/admin/")
    assert r.status_code in (302, 403)

    r = login(client)
    assert r.status_code == 302

    r = client.get("/admin/")
    assert r.status_code == 200
    assert b"Registered Disciples" in r.data


def test_login_bad_password(client):
    r = client.post("/auth/login", data={"email": "admin@example.com", "password": "nope"}, follow_redirects=True)
    assert b"Invalid credentials." in r.data
    assert client.get("/admin/").status_code == 302


def test_login_rate_limited(client):
    for _ in range(5):
        client.post("/auth/login", data={"email": "admin@example.com", "password": "nope"})
    r = client.post("/auth/login", data={"email": "admin@example.com", "password": "pw"}, follow_redirects=True)
    assert b"Too many login attempts" in r.data


def test_logout(client):
    login(client)
    r = client.get("/auth/logout")
    assert r.status_code == 302
    assert client.get("/admin/").status_code == 302


def test_post_without_csrf_rejected(client):
    r = client.post("/enter", data={"name": "Ravi Kumar", "mobile": "9876543210"})
    assert r.status_code == 400


def test_post_with_csrf_accepted(client):
    r = client.post("/enter", data=with_csrf(client, {"name": "Ravi Kumar", "mobile": "9876543210"}))
    assert r.status_code == 302


def test_unknown_page_404(client):
    assert client.get("/no-such-page").status_code == 404

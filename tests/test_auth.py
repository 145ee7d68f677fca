from tests.conftest import PASSWORD, login


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_login_success_sets_session_cookie(client, seed_users):
    resp = client.post("/api/auth/login", json={"username": "alice", "password": PASSWORD})
    assert resp.status_code == 200
    data = resp.json()
    assert data["username"] == "alice"
    assert data["fullName"] == "Alice"
    assert "password" not in data and "passwordHash" not in data
    set_cookie = resp.headers["set-cookie"]
    assert "ermakplan_sid=" in set_cookie
    assert "httponly" in set_cookie.lower()


def test_login_wrong_password(client, seed_users):
    resp = client.post("/api/auth/login", json={"username": "alice", "password": "wrong-pass"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid username or password"}


def test_login_unknown_user(client, seed_users):
    resp = client.post("/api/auth/login", json={"username": "nobody", "password": PASSWORD})
    assert resp.status_code == 401


def test_login_short_fields_is_validation_error(client, seed_users):
    resp = client.post("/api/auth/login", json={"username": "al", "password": "x"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation error"
    assert body["errors"]


def test_me_requires_session(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json() == {"message": "Not authenticated"}


def test_me_returns_current_user(client, seed_users):
    login(client, "bob")
    resp = client.get("/api/auth/me")
    assert resp.status_code == 200
    assert resp.json()["id"] == seed_users["bob"].id


def test_logout_destroys_session(client, seed_users):
    login(client, "alice")
    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out successfully"}
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/tasks").status_code == 401


def test_protected_route_without_session(client):
    resp = client.get("/api/tasks")
    assert resp.status_code == 401
    assert resp.json() == {"message": "Authentication required"}


def test_register_creates_user_and_session(client, seed_users):
    resp = client.post("/api/auth/register", json={"username": "carol", "password": "pw-carol", "fullName": "Carol"})
    assert resp.status_code == 201
    assert resp.json()["username"] == "carol"
    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["username"] == "carol"


def test_register_duplicate_username(client, seed_users):
    resp = client.post("/api/auth/register", json={"username": "alice", "password": "whatever"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Username already exists"}


def test_expired_session_is_rejected(client, db, seed_users):
    from datetime import datetime, timedelta
    from ermakplan.models.models import UserSession

    login(client, "alice")
    row = db.query(UserSession).filter(UserSession.user_id == seed_users["alice"].id).first()
    row.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.commit()
    assert client.get("/api/auth/me").status_code == 401
    db.expire_all()
    assert db.query(UserSession).filter(UserSession.user_id == seed_users["alice"].id).count() == 0


def test_password_is_stored_hashed(db, seed_users):
    from ermakplan.models.models import User

    user = db.query(User).filter(User.username == "alice").first()
    assert user.password_hash != PASSWORD


def test_users_list_has_no_passwords(client, seed_users):
    login(client, "alice")
    resp = client.get("/api/users")
    assert resp.status_code == 200
    users = resp.json()
    assert [u["username"] for u in users] == ["ermak", "alice", "bob"]
    assert all("passwordHash" not in u for u in users)


def test_login_prunes_expired_sessions(client, db, seed_users):
    from datetime import datetime, timedelta
    from ermakplan.models.models import UserSession

    stale = UserSession(
        token="stale-token",
        user_id=seed_users["bob"].id,
        created_at=datetime.utcnow() - timedelta(days=2),
        expires_at=datetime.utcnow() - timedelta(days=1),
    )
    db.add(stale)
    db.commit()

    login(client, "alice")
    db.expire_all()
    assert db.query(UserSession).filter(UserSession.token == "stale-token").count() == 0
    assert db.query(UserSession).filter(UserSession.user_id == seed_users["alice"].id).count() == 1


def test_stored_datetimes_are_naive_utc_columns():
    from sqlalchemy import DateTime
    from ermakplan.db import Base

    columns = [
        (table.name, column.name)
        for table in Base.metadata.tables.values()
        for column in table.columns
        if isinstance(column.type, DateTime) and column.type.timezone
    ]
    assert columns == []

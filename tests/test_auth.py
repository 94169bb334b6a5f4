from conftest import register


def test_register_and_me(client):
    headers = register(client, "Carol@Example.com", name="Carol")

    resp = client.get("/user/me", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["data"]["email"] == "carol@example.com"
    assert body["data"]["name"] == "Carol"


def test_register_duplicate_email(client, alice):
    resp = client.post(
        "/user/register",
        json={"email": "alice@example.com", "name": "Other", "password": "secret123"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"ok": False, "code": "USER_ALREADY_REGISTERED"}


def test_login(client, alice):
    resp = client.post(
        "/user/login", json={"email": "alice@example.com", "password": "secret123"}
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "alice@example.com"


def test_login_wrong_password(client, alice):
    resp = client.post(
        "/user/login", json={"email": "alice@example.com", "password": "nope-nope"}
    )
    assert resp.status_code == 401
    assert resp.json() == {"ok": False, "code": "EMAIL_OR_PASSWORD_INVALID"}


def test_requires_token(client):
    resp = client.get("/project")
    assert resp.status_code == 401
    assert resp.json() == {"ok": False, "code": "NOT_AUTHENTICATED"}


def test_rejects_garbage_token(client):
    resp = client.get("/project", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "NOT_AUTHENTICATED"


def test_logout(client, alice):
    resp = client.post("/user/logout", headers=alice)
    assert resp.json() == {"ok": True}

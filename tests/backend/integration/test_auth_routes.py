import uuid

import pytest


pytestmark = pytest.mark.asyncio


async def register_user(client, email: str, password: str, **extra):
    return await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, **extra},
    )


async def login_user(client, email: str, password: str):
    return await client.post(
        "/api/auth/login",
        json={"email": email, "password": password},
    )


async def test_register_and_login_flow(client):
    email = f"owner_{uuid.uuid4().hex[:6]}@example.com"
    password = "StrongPass!23"

    resp = await register_user(client, email, password, firstName="Ada", lastName="Byte")
    body = resp.json()
    assert resp.status_code == 201
    assert body["user"]["email"] == email
    assert body["user"]["firstName"] == "Ada"
    assert body["user"]["isAdmin"] is False
    assert body["token"]
    assert "accessToken" in resp.cookies

    # Duplicate email (any case) is a conflict
    dup_resp = await register_user(client, email.upper(), password)
    assert dup_resp.status_code == 409
    assert dup_resp.json()["detail"] == "User already exists"

    login_resp = await login_user(client, email, password)
    assert login_resp.status_code == 200
    assert login_resp.json()["user"]["id"] == body["user"]["id"]
    assert "accessToken" in login_resp.cookies

    bad_login = await login_user(client, email, "wrong")
    assert bad_login.status_code == 401
    assert bad_login.json()["detail"]["code"] == "AUTH_INVALID_CREDENTIALS"


async def test_register_requires_email_and_password(client):
    resp = await client.post("/api/auth/register", json={"email": "nopass@example.com"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Email and password required"

    resp = await client.post("/api/auth/login", json={"password": "x"})
    assert resp.status_code == 400


async def test_current_user_and_logout(client):
    email = f"owner_{uuid.uuid4().hex[:6]}@example.com"
    reg = await register_user(client, email, "UserInit#123")
    headers = {"Authorization": f"Bearer {reg.json()['token']}"}

    me_resp = await client.get("/api/auth/user", headers=headers)
    assert me_resp.status_code == 200
    assert me_resp.json()["email"] == email

    logout_resp = await client.post("/api/auth/logout")
    assert logout_resp.status_code == 200
    assert logout_resp.json()["message"] == "Logged out successfully"


async def test_cookie_session_is_accepted(client):
    email = f"owner_{uuid.uuid4().hex[:6]}@example.com"
    await register_user(client, email, "Cookie#123")

    # The client jar now holds the accessToken cookie set by register
    me_resp = await client.get("/api/auth/user")
    assert me_resp.status_code == 200
    assert me_resp.json()["email"] == email


async def test_protected_routes_require_token(client):
    resp = await client.get("/api/auth/user")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "AUTH_REQUIRED"

    resp = await client.get("/api/user/license-keys", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "AUTH_INVALID_TOKEN"

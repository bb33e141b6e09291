# tests/v1/test_auth.py
"""Tests for authentication endpoints and the session token list."""

from fastapi import status

from neko_blog.core.errors import ResponseCode


def _register(client, username: str = "mochi", password: str = "secret123") -> dict:
    return client.post(
        "/api/v1/auth/register", json={"username": username, "password": password}
    ).json()


def _login(client, username: str = "mochi", password: str = "secret123") -> dict:
    return client.post(
        "/api/v1/auth/login", json={"username": username, "password": password}
    ).json()


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_register_and_login(client) -> None:
    body = _register(client)
    assert body["code"] == ResponseCode.SUCCESS
    assert body["data"]["username"] == "mochi"
    assert body["data"]["follower_count"] == 0

    login = _login(client)
    assert login["code"] == ResponseCode.SUCCESS
    token = login["data"]["token"]

    me = client.get("/api/v1/users/me", headers=_bearer(token))
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["data"]["uid"] == body["data"]["uid"]


def test_register_duplicate_username(client) -> None:
    _register(client)
    body = _register(client)
    assert body["code"] == ResponseCode.PARAMETER_ERROR
    assert body["message"] == "username already exists"


def test_register_validates_input(client) -> None:
    response = client.post("/api/v1/auth/register", json={"username": "x", "password": "secret123"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["code"] == ResponseCode.PARAMETER_ERROR


def test_login_with_wrong_password(client) -> None:
    _register(client)
    body = _login(client, password="wrong-password")
    assert body["code"] == ResponseCode.AUTH_ERROR


def test_logout_revokes_token(client) -> None:
    _register(client)
    token = _login(client)["data"]["token"]

    assert client.post("/api/v1/auth/logout", headers=_bearer(token)).json()["code"] == ResponseCode.SUCCESS
    me = client.get("/api/v1/users/me", headers=_bearer(token)).json()
    assert me["code"] == ResponseCode.AUTH_ERROR


def test_sixth_login_evicts_oldest_token(client) -> None:
    _register(client)
    tokens = [_login(client)["data"]["token"] for _ in range(6)]

    oldest = client.get("/api/v1/users/me", headers=_bearer(tokens[0])).json()
    newest = client.get("/api/v1/users/me", headers=_bearer(tokens[-1])).json()
    second = client.get("/api/v1/users/me", headers=_bearer(tokens[1])).json()

    assert oldest["code"] == ResponseCode.AUTH_ERROR
    assert newest["code"] == ResponseCode.SUCCESS
    assert second["code"] == ResponseCode.SUCCESS


def test_missing_or_garbage_token(client) -> None:
    assert client.get("/api/v1/users/me").json()["code"] == ResponseCode.AUTH_ERROR
    garbage = client.get("/api/v1/users/me", headers=_bearer("not-a-jwt")).json()
    assert garbage["code"] == ResponseCode.AUTH_ERROR

"""Integration tests for the /auth routes over an in-memory account store."""

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app import create_app
from config import AppSettings
from errors import register_error_handlers
from routes.auth_routes import router as auth_router

PASSWORD = "Passw0rd"

JANE = {
    "role": "customer",
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane@example.com",
    "password": PASSWORD,
    "confirm": PASSWORD,
    "dob": "1990-01-01",
}


def _build_test_app(auth_service, tokens) -> FastAPI:
    """Minimal app with the auth router; no limiter storage so rate limiting is off."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.rate_limiter = None
        app.state.auth_service = auth_service
        app.state.token_service = tokens
        yield

    app = FastAPI(lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(auth_router)
    return app


@pytest.fixture
def client(auth_service, tokens):
    with TestClient(_build_test_app(auth_service, tokens)) as c:
        yield c


def _register_and_verify(client, notifier) -> dict:
    assert client.post("/auth/register", json=JANE).status_code == 201
    resp = client.post(
        "/auth/verify-email",
        json={"email": "jane@example.com", "code": notifier.last_code("verification")},
    )
    assert resp.status_code == 200
    return resp.json()


class TestRegisterAndVerify:
    def test_jane_scenario(self, client, notifier):
        resp = client.post("/auth/register", json=JANE)
        assert resp.status_code == 201
        assert resp.json() == {"ok": True}
        assert len(notifier.of_kind("verification")) == 1

        resp = client.post(
            "/auth/verify-email",
            json={"email": "jane@example.com", "code": notifier.last_code("verification")},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["user"]["email"] == "jane@example.com"
        assert body["user"]["isVerified"] is True
        assert "passwordHash" not in body["user"]
        assert "aa_token" in resp.cookies

    def test_register_validation_error_shape(self, client):
        resp = client.post("/auth/register", json={**JANE, "email": "nope"})
        assert resp.status_code == 400
        assert resp.json() == {
            "ok": False,
            "code": "ERR_INVALID_EMAIL",
            "error": "invalid email",
            "field": "email",
        }

    def test_register_duplicate_email(self, client):
        client.post("/auth/register", json=JANE)
        resp = client.post("/auth/register", json=JANE)
        assert resp.status_code == 409
        assert resp.json()["code"] == "ERR_EMAIL_TAKEN"

    def test_vendor_categories_round_trip(self, client, store):
        vendor = {
            "role": "vendor",
            "firstName": "Sam",
            "lastName": "Potter",
            "email": "sam@example.com",
            "password": PASSWORD,
            "confirm": PASSWORD,
            "businessName": "Clay & Co",
            "phone": "+61412345678",
            "description": "Ceramics",
            "categories": ["Home", "Jewellery", "Home"],
        }
        assert client.post("/auth/register", json=vendor).status_code == 201
        assert sorted(store.get("sam@example.com").vendor.categories) == ["Home", "Jewellery"]

    def test_malformed_body(self, client):
        resp = client.post(
            "/auth/register",
            content="{oops",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "ERR_REQUIRED"

    def test_notification_failure_is_500(self, client, notifier):
        notifier.fail = True
        resp = client.post("/auth/register", json=JANE)
        assert resp.status_code == 500
        assert resp.json()["code"] == "ERR_SERVER"

    def test_resend_unknown_and_throttled_look_the_same(self, client):
        client.post("/auth/register", json=JANE)
        unknown = client.post("/auth/verify-email/resend", json={"email": "nobody@example.com"})
        throttled = client.post("/auth/verify-email/resend", json={"email": "jane@example.com"})
        assert unknown.status_code == throttled.status_code == 200
        assert unknown.json() == throttled.json() == {"ok": True}


class TestSession:
    def test_login_me_logout(self, client, notifier):
        _register_and_verify(client, notifier)
        client.cookies.clear()

        resp = client.post("/auth/login", json={"user": "jane@example.com", "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["user"]["email"] == "jane@example.com"
        assert "HttpOnly" in resp.headers["set-cookie"]

        me = client.get("/auth/me")
        assert me.status_code == 200
        assert me.json() == {"ok": True, "user": resp.json()["user"]}

        out = client.post("/auth/logout")
        assert out.json() == {"ok": True}
        assert "aa_token" not in client.cookies

        me = client.get("/auth/me")
        assert me.status_code == 401
        assert me.json()["code"] == "NO_TOKEN"

    def test_login_failure(self, client):
        client.post("/auth/register", json=JANE)
        wrong = client.post("/auth/login", json={"user": "jane@example.com", "password": "Wr0ngpass"})
        unknown = client.post("/auth/login", json={"user": "ghost", "password": PASSWORD})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["code"] == "ERR_AUTH_FAILED"

    def test_login_blank(self, client):
        resp = client.post("/auth/login", json={})
        assert resp.status_code == 400
        assert resp.json()["code"] == "ERR_REQUIRED"

    def test_me_bad_token(self, client):
        resp = client.get("/auth/me", headers={"Cookie": "aa_token=garbage"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "BAD_TOKEN"

    def test_logout_without_session(self, client):
        resp = client.post("/auth/logout")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}


class TestForgotPassword:
    def test_unregistered_email_sends_nothing(self, client, notifier):
        resp = client.post("/auth/forgot/start", json={"email": "nobody@example.com"})
        assert resp.json() == {"ok": True}
        assert notifier.sent == []

    def test_full_reset_flow(self, client, notifier):
        _register_and_verify(client, notifier)

        assert client.post("/auth/forgot/start", json={"email": "jane@example.com"}).json() == {"ok": True}
        resp = client.post(
            "/auth/forgot/verify",
            json={"email": "jane@example.com", "code": notifier.last_code("reset")},
        )
        assert resp.status_code == 200
        reset_token = resp.json()["resetToken"]

        resp = client.post(
            "/auth/forgot/reset",
            json={
                "email": "jane@example.com",
                "resetToken": reset_token,
                "password": "N3wPassword",
                "confirm": "N3wPassword",
            },
        )
        assert resp.json() == {"ok": True}
        assert "aa_token" not in client.cookies

        login = client.post("/auth/login", json={"user": "jane@example.com", "password": "N3wPassword"})
        assert login.status_code == 200

    def test_too_many_tries(self, client, notifier):
        client.post("/auth/register", json=JANE)
        client.post("/auth/forgot/start", json={"email": "jane@example.com"})
        code = notifier.last_code("reset")
        wrong = "AAAAAA" if code != "AAAAAA" else "BBBBBB"

        codes = [
            client.post(
                "/auth/forgot/verify", json={"email": "jane@example.com", "code": wrong}
            ).json()["code"]
            for _ in range(6)
        ]
        assert codes == ["ERR_CODE_INCORRECT"] * 5 + ["ERR_TOO_MANY_TRIES"]

        resp = client.post(
            "/auth/forgot/verify", json={"email": "jane@example.com", "code": code}
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "ERR_NO_RESET_SESSION"

    def test_bad_reset_token(self, client):
        resp = client.post(
            "/auth/forgot/reset",
            json={
                "email": "jane@example.com",
                "resetToken": "garbage",
                "password": "N3wPassword",
                "confirm": "N3wPassword",
            },
        )
        assert resp.status_code == 401
        assert resp.json()["code"] == "ERR_BAD_RESET_TOKEN"


class TestCreateApp:
    def test_routes_registered(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
        monkeypatch.setenv("JWT_SECRET", "create-app-secret-with-at-least-32-bytes")
        app = create_app(AppSettings())
        paths = set(app.openapi()["paths"])
        assert {"/health", "/auth/login", "/auth/me", "/auth/forgot/reset"} <= paths

    def test_missing_jwt_secret_fails_fast(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
        monkeypatch.setenv("JWT_SECRET", "")
        with pytest.raises(RuntimeError):
            create_app(AppSettings())

    def test_error_body_documented(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
        monkeypatch.setenv("JWT_SECRET", "create-app-secret-with-at-least-32-bytes")
        schema = create_app(AppSettings()).openapi()
        responses = schema["paths"]["/auth/login"]["post"]["responses"]
        ref = responses["429"]["content"]["application/json"]["schema"]["$ref"]
        assert ref.endswith("/ErrorResponse")
        assert "401" in responses
        assert {"ok", "code", "error"} <= set(
            schema["components"]["schemas"]["ErrorResponse"]["properties"]
        )

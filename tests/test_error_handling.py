"""
Error responses: domain errors keep their status and shape, unhandled
errors don't leak internals outside local/dev.
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from tourney.core.env import get_env_name, is_local_env, is_production_env
from tourney.core.errors import (
    ValidationError,
    TournamentFullError,
    ConsentRequiredError,
    GatewayError,
    IdentityNotFoundError,
)
from tourney.exception_handlers import register_exception_handlers


class Payload(BaseModel):
    count: int


@pytest.fixture
def test_app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise ValueError("This is a test error with sensitive details")

    @app.get("/full")
    async def full():
        raise TournamentFullError()

    @app.get("/consent")
    async def consent():
        raise ConsentRequiredError()

    @app.get("/gateway")
    async def gateway():
        raise GatewayError()

    @app.get("/missing")
    async def missing():
        raise IdentityNotFoundError()

    @app.get("/invalid")
    async def invalid():
        raise ValidationError(["name is required", "age is required"])

    @app.post("/typed")
    async def typed(payload: Payload):
        return {"count": payload.count}

    return app


def _clear_env_caches():
    for cached in (get_env_name, is_local_env, is_production_env):
        cached.cache_clear()


@pytest.fixture
def env(monkeypatch):
    def _set(name):
        monkeypatch.setenv("ENV", name)
        _clear_env_caches()

    yield _set
    _clear_env_caches()


@pytest.mark.parametrize(
    "path, status_code, message",
    [
        ("/full", 400, "Tournament is full"),
        ("/consent", 403, "Please complete your profile and give consent first."),
        ("/gateway", 502, "Failed to send OTP. Please try again."),
        ("/missing", 404, "User not found. Please verify your phone number first."),
    ],
)
def test_domain_errors_keep_status_and_shape(test_app, path, status_code, message):
    response = TestClient(test_app).get(path)
    assert response.status_code == status_code
    assert response.json() == {"success": False, "message": message}


def test_validation_error_lists_every_field(test_app):
    response = TestClient(test_app).get("/invalid")
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Validation failed",
        "errors": ["name is required", "age is required"],
    }


def test_request_validation_is_400(test_app):
    response = TestClient(test_app).post("/typed", json={"count": "many"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"] and body["errors"][0].startswith("count")


def test_unknown_route_uses_error_shape(test_app):
    response = TestClient(test_app).get("/nope")
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_production_error_response_is_generic(test_app, env):
    env("prod")
    response = TestClient(test_app, raise_server_exceptions=False).get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body == {"success": False, "message": "Internal server error"}
    assert "sensitive details" not in response.text


def test_local_error_response_includes_details(test_app, env):
    env("dev")
    response = TestClient(test_app, raise_server_exceptions=False).get("/boom")

    assert response.status_code == 500
    assert "sensitive details" in response.json()["detail"]


def test_switching_env_back_to_dev_restores_details(test_app, env):
    client = TestClient(test_app, raise_server_exceptions=False)

    env("prod")
    assert "detail" not in client.get("/boom").json()

    env("dev")
    assert "sensitive details" in client.get("/boom").json()["detail"]

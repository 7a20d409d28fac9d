import asyncio
from unittest.mock import patch

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from core import request_logger
from core.request_logger import REDACTED, RequestBodyLoggerMiddleware, redact


def _build_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestBodyLoggerMiddleware)

    @app.post("/echo")
    async def echo(request: Request):
        return await request.json()

    @app.put("/raw")
    async def raw(request: Request):
        return {"size": len(await request.body())}

    @app.get("/ping")
    def ping():
        return {"ok": True}

    return app


def _logged_meta(mock_info):
    assert mock_info.call_count == 1
    return mock_info.call_args.kwargs["extra"]["meta"]


def test_redact_masks_nested_sensitive_keys():
    body = {
        "username": "admin",
        "password": "Smart@2026",
        "profile": {"password_hash": "$2b$10$x", "email": "a@example.com"},
        "tokens": [{"refresh_token": "r"}],
        "api_key": "k",
    }

    assert redact(body) == {
        "username": "admin",
        "password": REDACTED,
        "profile": {"password_hash": REDACTED, "email": "a@example.com"},
        "tokens": REDACTED,
        "api_key": REDACTED,
    }


def test_post_body_is_logged_redacted_and_still_reaches_route():
    client = TestClient(_build_app())
    payload = {"username": "cashier1", "password": "hunter2"}

    with patch.object(request_logger.logger, "info") as info:
        resp = client.post("/echo?dry=1", json=payload)

    assert resp.status_code == 200
    assert resp.json() == payload
    meta = _logged_meta(info)
    assert meta == {
        "method": "POST",
        "url": "/echo?dry=1",
        "body": {"username": "cashier1", "password": REDACTED},
    }


def test_non_json_body_is_summarised():
    client = TestClient(_build_app())

    with patch.object(request_logger.logger, "info") as info:
        resp = client.put("/raw", content=b"\x00\x01binary")

    assert resp.json() == {"size": 8}
    assert _logged_meta(info)["body"] == "<8 bytes non-JSON>"


def test_get_requests_are_not_logged():
    client = TestClient(_build_app())

    with patch.object(request_logger.logger, "info") as info:
        resp = client.get("/ping")

    assert resp.status_code == 200
    info.assert_not_called()


def test_early_disconnect_reaches_the_app():
    seen = []

    async def inner(scope, receive, send):
        seen.append(await receive())

    async def receive():
        return {"type": "http.disconnect"}

    async def send(message):
        raise AssertionError("nothing should be sent")

    scope = {"type": "http", "method": "POST", "path": "/echo", "query_string": b""}
    with patch.object(request_logger.logger, "info") as info:
        asyncio.run(RequestBodyLoggerMiddleware(inner)(scope, receive, send))

    assert seen == [{"type": "http.disconnect"}]
    info.assert_not_called()

"""
Request body logging middleware.

Follows Layer 6 rules:
- Logs method, URL and JSON body of write requests (POST/PUT/PATCH)
- NEVER logs passwords, tokens or secrets: matching keys are redacted at any depth
- Raw ASGI: the body is buffered once and replayed to the app unchanged
"""
from __future__ import annotations
import json
from typing import Any, Callable
from core.logger import get_logger

logger = get_logger("http")

LOGGED_METHODS = frozenset({"POST", "PUT", "PATCH"})
REDACTED = "***"
_SENSITIVE_MARKERS = ("password", "passwd", "secret", "token", "authorization", "api_key", "hash")
_MAX_LOGGED_BYTES = 16_384


def _is_sensitive(key: str) -> bool:
    k = key.lower()
    return any(m in k for m in _SENSITIVE_MARKERS)


def redact(value: Any) -> Any:
    """Copy of a decoded JSON value with sensitive keys masked."""
    if isinstance(value, dict):
        return {k: (REDACTED if _is_sensitive(str(k)) else redact(v)) for k, v in value.items()}
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def _describe_body(raw: bytes) -> Any:
    if not raw:
        return None
    if len(raw) > _MAX_LOGGED_BYTES:
        return f"<{len(raw)} bytes omitted>"
    try:
        return redact(json.loads(raw))
    except (UnicodeDecodeError, ValueError):
        return f"<{len(raw)} bytes non-JSON>"


def _replay_first(first: dict, receive: Callable) -> Callable:
    """receive() that returns an already consumed message once, then defers to the server."""
    replayed = False

    async def _receive() -> dict:
        nonlocal replayed
        if not replayed:
            replayed = True
            return first
        return await receive()

    return _receive


class RequestBodyLoggerMiddleware:
    """Log write requests before handing them to the app."""

    def __init__(self, app: Callable) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http" or scope.get("method") not in LOGGED_METHODS:
            await self.app(scope, receive, send)
            return

        chunks: list[bytes] = []
        while True:
            message = await receive()
            if message["type"] != "http.request":
                # client went away before sending the body
                await self.app(scope, _replay_first(message, receive), send)
                return
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        body = b"".join(chunks)

        url = scope.get("path", "")
        if scope.get("query_string"):
            url = f"{url}?{scope['query_string'].decode('latin-1')}"
        logger.info(
            "Request details",
            extra={"meta": {"method": scope["method"], "url": url, "body": _describe_body(body)}},
        )

        replay = _replay_first({"type": "http.request", "body": body, "more_body": False}, receive)
        await self.app(scope, replay, send)

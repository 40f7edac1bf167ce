"""ASGI middleware: request context logging and body size enforcement."""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from orderform.core.config import settings
from orderform.core.errors import PayloadTooLarge
from orderform.core.logging import actor_ctx_var, request_id_ctx_var


class RequestContextLogMiddleware(BaseHTTPMiddleware):
    """Tags the request with an ID and logs one ``request_completed`` line."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        tokens = (request_id_ctx_var.set(request_id), actor_ctx_var.set("-"))
        started = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            status_code = response.status_code if response is not None else 500
            log = logger.bind(
                method=request.method,
                path=request.url.path,
                status=status_code,
                client=request.client.host if request.client else None,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            if status_code >= 500:
                log.warning("request_completed")
            else:
                log.info("request_completed")
            if response is not None:
                response.headers.setdefault("X-Request-ID", request_id)
            request_id_ctx_var.reset(tokens[0])
            actor_ctx_var.reset(tokens[1])


class BodySizeLimitMiddleware:
    """Answers 413 for bodies over ``max_bytes``.

    A declared ``Content-Length`` is checked up front. Chunked bodies are
    counted as they are read; the overflow raises ``PayloadTooLarge`` inside
    the app, where its handler answers.
    """

    def __init__(self, app: ASGIApp, max_bytes: int | None = None):
        self.app = app
        self.max_bytes = max_bytes or settings.MAX_BODY_BYTES

    def _too_large(self) -> JSONResponse:
        logger.bind(limit=self.max_bytes).info("request_body_too_large")
        return JSONResponse(
            status_code=413,
            content=PayloadTooLarge().to_content(),
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = dict(scope["headers"]).get(b"content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_bytes:
            await self._too_large()(scope, receive, send)
            return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise PayloadTooLarge()
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except PayloadTooLarge:
            if response_started:
                raise
            await self._too_large()(scope, receive, send)

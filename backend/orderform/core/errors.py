"""Request-boundary error taxonomy and its FastAPI handlers."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger


class OrderFormError(Exception):
    """Base class for failures that map onto a structured JSON response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_content(self) -> dict[str, Any]:
        return {"success": False, "error": self.message}

    def headers(self) -> dict[str, str] | None:
        return None


class InvalidInput(OrderFormError):
    status_code = 400
    message = "Invalid order data"

    def __init__(self, violations: Sequence[dict[str, str]], message: Optional[str] = None):
        super().__init__(message)
        self.violations = list(violations)

    def to_content(self) -> dict[str, Any]:
        content = super().to_content()
        content["violations"] = self.violations
        return content


class Unauthorized(OrderFormError):
    # One message for every token failure.
    status_code = 401
    message = "Invalid or expired access token"


class RateLimited(OrderFormError):
    status_code = 429
    message = "Too many orders submitted. Please try again later."

    def __init__(self, retry_after: int, message: Optional[str] = None):
        super().__init__(message)
        self.retry_after = max(int(retry_after), 1)

    def headers(self) -> dict[str, str] | None:
        return {"Retry-After": str(self.retry_after)}


class TransportFailure(OrderFormError):
    status_code = 500
    message = "The order could not be sent. Please try again later."


class PartialDeliveryFailure(TransportFailure):
    message = (
        "Your confirmation was sent but the company could not be notified. "
        "Please contact us directly."
    )

    def __init__(self, delivered: Sequence[str], failed: Sequence[str], message: Optional[str] = None):
        super().__init__(message)
        self.delivered = list(delivered)
        self.failed = list(failed)

    def to_content(self) -> dict[str, Any]:
        content = super().to_content()
        content["partial"] = True
        return content


class PayloadTooLarge(HTTPException):
    """Raised while reading a body that outgrows ``MAX_BODY_BYTES``.

    An ``HTTPException`` so that FastAPI passes it through body parsing
    instead of turning it into a generic 400.
    """

    def __init__(self) -> None:
        super().__init__(status_code=413, detail="Request entity too large")

    def to_content(self) -> dict[str, Any]:
        return {"success": False, "error": self.detail}


def init_error_handlers(app: FastAPI) -> None:
    """Attach the taxonomy's exception handlers to the FastAPI app."""

    async def order_form_error_handler(request: Request, exc: OrderFormError):
        log = logger.bind(
            path=str(request.url.path),
            status=exc.status_code,
            error_type=type(exc).__name__,
        )
        if exc.status_code >= 500:
            log.error("request_failed")
        else:
            log.info("request_rejected")
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_content(),
            headers=exc.headers(),
        )

    app.add_exception_handler(OrderFormError, order_form_error_handler)

    async def payload_too_large_handler(request: Request, exc: PayloadTooLarge):
        logger.bind(path=str(request.url.path)).info("request_body_too_large")
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    app.add_exception_handler(PayloadTooLarge, payload_too_large_handler)

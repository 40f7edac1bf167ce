from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from loguru import logger
from slowapi.util import get_remote_address

from orderform.core.errors import InvalidInput, RateLimited, Unauthorized
from orderform.core.rate_limit import OrderRateLimiter, get_order_rate_limiter
from orderform.core.security import verify_order_access_token
from orderform.services.notifier import OrderNotifier, get_order_notifier
from orderform.services.orders import validate_order_payload

router = APIRouter(tags=["orders"])


def _bearer_token(payload: Any, request: Request) -> Optional[str]:
    token = payload.get("accessToken") if isinstance(payload, dict) else None
    if isinstance(token, str) and token:
        return token
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth.split(" ", 1)[1]
    return None


def _rate_limit_key(payload: Any, request: Request) -> str:
    client = payload.get("client") if isinstance(payload, dict) else None
    email = client.get("email") if isinstance(client, dict) else None
    if isinstance(email, str) and email.strip():
        return f"email:{email.strip().lower()}"
    return f"addr:{get_remote_address(request)}"


@router.post("/send-order")
async def send_order(
    request: Request,
    order_limiter: OrderRateLimiter = Depends(get_order_rate_limiter),
    notifier: OrderNotifier = Depends(get_order_notifier),
):
    """Verify token, apply the rate limit, validate, then send both emails.

    Each stage short-circuits; no email leaves before all checks pass.
    """

    try:
        payload = await request.json()
    except ValueError:
        raise InvalidInput([{"field": "body", "reason": "must be valid JSON"}]) from None

    claims = verify_order_access_token(_bearer_token(payload, request))
    if claims is None:
        raise Unauthorized()

    key = _rate_limit_key(payload, request)
    if not order_limiter.allow(key):
        logger.bind(key=key, code_id=claims.code_id).warning("order_rate_limited")
        raise RateLimited(retry_after=order_limiter.retry_after(key))

    order = validate_order_payload(payload)
    await notifier.send(order)

    logger.bind(code_id=claims.code_id).info("order_submitted")
    return {"success": True, "message": "Order sent successfully"}

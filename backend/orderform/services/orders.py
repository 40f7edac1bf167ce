"""Order payload validation.

``validate_order_payload`` runs before any side effect of an order
submission. It returns an ``OrderSubmission`` whose ``vat`` and ``total``
are the server's own figures, or raises ``InvalidInput`` listing every
violation as ``{"field": "items.0.quantity", "reason": "..."}``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from loguru import logger
from pydantic import ValidationError

from orderform.core.config import settings
from orderform.core.errors import InvalidInput
from orderform.schemas.order import OrderSubmission

CENT = Decimal("0.01")
# Browsers compute totals with binary floats.
TOLERANCE = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _field_path(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "body"


def _schema_violations(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {"field": _field_path(err["loc"]), "reason": err["msg"]}
        for err in exc.errors(include_url=False)
    ]


def _arithmetic_violations(order: OrderSubmission) -> list[dict[str, str]]:
    violations: list[dict[str, str]] = []

    for idx, item in enumerate(order.items):
        expected = item.quantity * item.unit_price
        if abs(expected - item.total) > TOLERANCE:
            violations.append(
                {
                    "field": f"items.{idx}.total",
                    "reason": f"must equal quantity x unitPrice ({to_cents(expected)})",
                }
            )

    if not order.ordered_items:
        violations.append(
            {"field": "items", "reason": "at least one item must have a positive quantity"}
        )

    subtotal = sum((item.quantity * item.unit_price for item in order.items), Decimal("0"))
    if abs(subtotal - order.subtotal) > TOLERANCE:
        violations.append(
            {"field": "subtotal", "reason": f"must equal the sum of item totals ({to_cents(subtotal)})"}
        )
        return violations

    vat, total = compute_vat(subtotal)
    if order.vat is not None and abs(order.vat - vat) > TOLERANCE:
        violations.append({"field": "vat", "reason": f"must equal {vat}"})
    if order.total is not None and abs(order.total - total) > TOLERANCE:
        violations.append({"field": "total", "reason": f"must equal {total}"})
    return violations


def compute_vat(subtotal: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(vat, total)`` for a subtotal, rounded half-up to cents."""
    subtotal = to_cents(subtotal)
    vat = to_cents(subtotal * settings.VAT_RATE)
    return vat, subtotal + vat


def validate_order_payload(payload: Any) -> OrderSubmission:
    if not isinstance(payload, dict):
        raise InvalidInput([{"field": "body", "reason": "must be a JSON object"}])

    try:
        order = OrderSubmission.model_validate(payload)
    except ValidationError as exc:
        violations = _schema_violations(exc)
        logger.bind(violations=len(violations)).info("order_payload_invalid")
        raise InvalidInput(violations) from exc

    violations = _arithmetic_violations(order)
    if violations:
        logger.bind(violations=len(violations)).info("order_totals_invalid")
        raise InvalidInput(violations)

    subtotal = to_cents(order.subtotal)
    vat, total = compute_vat(subtotal)
    return order.model_copy(update={"subtotal": subtotal, "vat": vat, "total": total})

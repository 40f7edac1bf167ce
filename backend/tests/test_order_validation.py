from decimal import Decimal

import pytest

from orderform.core.errors import InvalidInput
from orderform.services.orders import compute_vat, validate_order_payload


def _fields(exc: InvalidInput) -> set[str]:
    return {v["field"] for v in exc.violations}


def test_valid_order_gets_server_totals(order_payload):
    order = validate_order_payload(order_payload())

    assert order.subtotal == Decimal("7.00")
    assert order.vat == Decimal("1.47")
    assert order.total == Decimal("8.47")


def test_vat_rounds_half_up():
    assert compute_vat(Decimal("0.50")) == (Decimal("0.11"), Decimal("0.61"))


def test_negative_quantity_rejected(order_payload):
    payload = order_payload()
    payload["items"][0]["quantity"] = -1

    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(payload)

    assert "items.0.quantity" in _fields(exc_info.value)


def test_empty_items_rejected(order_payload):
    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(order_payload(items=[], subtotal=0))

    assert "items" in _fields(exc_info.value)


def test_missing_client_email_rejected(order_payload):
    payload = order_payload()
    del payload["client"]["email"]

    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(payload)

    assert "client.email" in _fields(exc_info.value)


def test_malformed_client_email_rejected(order_payload):
    payload = order_payload()
    payload["client"]["email"] = "not-an-email"

    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(payload)

    assert "client.email" in _fields(exc_info.value)


def test_line_total_mismatch_rejected(order_payload):
    payload = order_payload()
    payload["items"][0]["total"] = 70.00

    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(payload)

    assert "items.0.total" in _fields(exc_info.value)


def test_float_noise_within_a_cent_accepted(order_payload):
    payload = order_payload(subtotal=7.0000001)
    payload["items"][0]["total"] = 6.9999999

    order = validate_order_payload(payload)

    assert order.subtotal == Decimal("7.00")


def test_subtotal_mismatch_rejected(order_payload):
    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(order_payload(subtotal=8.00))

    assert "subtotal" in _fields(exc_info.value)


def test_client_vat_and_total_are_checked(order_payload):
    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(order_payload(vat=1.00, total=8.00))

    assert _fields(exc_info.value) == {"vat", "total"}


def test_all_zero_quantities_rejected(order_payload):
    payload = order_payload(subtotal=0)
    payload["items"][0].update({"quantity": 0, "total": 0})

    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(payload)

    assert "items" in _fields(exc_info.value)


def test_zero_quantity_lines_are_kept_but_not_ordered(order_payload):
    payload = order_payload()
    payload["items"].append(
        {"productName": "Spare bulb", "size": "", "quantity": 0, "unitPrice": 2.0, "total": 0}
    )

    order = validate_order_payload(payload)

    assert len(order.items) == 2
    assert [item.product_name for item in order.ordered_items] == ["Cable"]


@pytest.mark.parametrize("value", ["Alex\r\nBcc: victim@example.com", "Alex\nMartin"])
def test_line_breaks_in_names_rejected(order_payload, value):
    payload = order_payload()
    payload["client"]["name"] = value

    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(payload)

    assert "client.name" in _fields(exc_info.value)


def test_non_object_body_rejected():
    with pytest.raises(InvalidInput) as exc_info:
        validate_order_payload(["not", "an", "order"])

    assert _fields(exc_info.value) == {"body"}

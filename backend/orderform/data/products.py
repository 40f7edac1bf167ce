"""Product catalog offered on the order form."""

from decimal import Decimal

PRODUCTS = [
    # LED UV ramp 6%
    {"id": "uv6-30", "name": "LED UV ramp 6%", "size": "30cm", "unit_price": Decimal("50.00")},
    {"id": "uv6-60", "name": "LED UV ramp 6%", "size": "60cm", "unit_price": Decimal("80.00")},
    {"id": "uv6-90", "name": "LED UV ramp 6%", "size": "90cm", "unit_price": Decimal("110.00")},
    # LED UV ramp 12%
    {"id": "uv12-30", "name": "LED UV ramp 12%", "size": "30cm", "unit_price": Decimal("50.00")},
    {"id": "uv12-60", "name": "LED UV ramp 12%", "size": "60cm", "unit_price": Decimal("80.00")},
    {"id": "uv12-90", "name": "LED UV ramp 12%", "size": "90cm", "unit_price": Decimal("110.00")},
    # LED UV ramp 14%
    {"id": "uv14-30", "name": "LED UV ramp 14%", "size": "30cm", "unit_price": Decimal("55.00")},
    {"id": "uv14-60", "name": "LED UV ramp 14%", "size": "60cm", "unit_price": Decimal("87.50")},
    {"id": "uv14-90", "name": "LED UV ramp 14%", "size": "90cm", "unit_price": Decimal("120.00")},
    # LED Natural Vision ramp
    {"id": "nv-30", "name": "LED Natural Vision ramp", "size": "30cm", "unit_price": Decimal("19.50")},
    {"id": "nv-60", "name": "LED Natural Vision ramp", "size": "60cm", "unit_price": Decimal("29.50")},
    {"id": "nv-90", "name": "LED Natural Vision ramp", "size": "90cm", "unit_price": Decimal("37.50")},
    {"id": "nv-120", "name": "LED Natural Vision ramp", "size": "120cm", "unit_price": Decimal("44.50")},
    # Connection cable
    {"id": "cable-30", "name": "Connection cable", "size": "30cm", "unit_price": Decimal("2.00")},
    {"id": "cable-120", "name": "Connection cable", "size": "120cm", "unit_price": Decimal("3.50")},
]

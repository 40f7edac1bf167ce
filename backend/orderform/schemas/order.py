"""Inbound order payload.

JSON keys are camelCase (``unitPrice``, ``postalCode``); attributes are
snake_case. These models check shape and per-field bounds only; the
arithmetic between fields is checked in ``orderform.services.orders``.
"""

from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel

MAX_QUANTITY = 10_000
MAX_UNIT_PRICE = Decimal("100000")
MAX_AMOUNT = Decimal("1000000000")
MAX_ITEMS = 200


def _single_line(value: str) -> str:
    # Values end up in mail headers (subject, display names).
    if any(ch in value for ch in ("\r", "\n", "\x00")):
        raise ValueError("must not contain line breaks or NUL characters")
    return value


def _text(max_length: int, min_length: int = 0):
    return Annotated[
        str,
        StringConstraints(strip_whitespace=True, min_length=min_length, max_length=max_length),
        AfterValidator(_single_line),
    ]


RequiredName = _text(200, min_length=1)
Name = _text(200)
Address = _text(300)
PostalCode = _text(100)
Phone = _text(50)
VatNumber = _text(50)
ProductId = _text(64)
Size = _text(50)
OrderDate = _text(32, min_length=1)

Quantity = Annotated[int, Field(ge=0, le=MAX_QUANTITY)]
UnitPrice = Annotated[Decimal, Field(ge=0, le=MAX_UNIT_PRICE)]
Amount = Annotated[Decimal, Field(ge=0, le=MAX_AMOUNT)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompanySnapshot(_CamelModel):
    name: Name = ""
    director: Name = ""
    address: Address = ""
    postal_code: PostalCode = ""
    phone: Phone = ""
    email: Optional[EmailStr] = None
    vat_number: VatNumber = ""


class ClientInfo(_CamelModel):
    name: RequiredName
    company: Name = ""
    address: Address = ""
    postal_code: PostalCode = ""
    phone: Phone = ""
    email: EmailStr


class OrderItem(_CamelModel):
    product_id: Optional[ProductId] = None
    product_name: RequiredName
    size: Size = ""
    quantity: Quantity
    unit_price: UnitPrice
    total: Amount


class OrderSubmission(_CamelModel):
    date: OrderDate
    company: Optional[CompanySnapshot] = None
    client: ClientInfo
    items: List[OrderItem] = Field(min_length=1, max_length=MAX_ITEMS)
    subtotal: Amount
    vat: Optional[Amount] = None
    total: Optional[Amount] = None
    access_token: Optional[str] = Field(default=None, max_length=4096)

    @property
    def ordered_items(self) -> List[OrderItem]:
        """Lines the client actually ordered."""
        return [item for item in self.items if item.quantity > 0]

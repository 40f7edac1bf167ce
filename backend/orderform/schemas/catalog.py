from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductOut(_CamelOut):
    id: str
    name: str
    size: str
    unit_price: float


class CompanyOut(_CamelOut):
    name: str
    director: str
    address: str
    postal_code: str
    phone: str
    email: str
    vat_number: str


class CatalogOut(_CamelOut):
    products: List[ProductOut]
    company: CompanyOut
    vat_rate: float
    free_delivery_threshold: float
    currency: str

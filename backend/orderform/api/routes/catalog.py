from fastapi import APIRouter

from orderform.core.config import settings
from orderform.data.products import PRODUCTS
from orderform.schemas.catalog import CatalogOut, CompanyOut, ProductOut

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("", response_model=CatalogOut)
async def get_catalog() -> CatalogOut:
    return CatalogOut(
        products=[ProductOut(**product) for product in PRODUCTS],
        company=CompanyOut(
            name=settings.COMPANY_NAME,
            director=settings.COMPANY_DIRECTOR,
            address=settings.COMPANY_ADDRESS,
            postal_code=settings.COMPANY_POSTAL_CODE,
            phone=settings.COMPANY_PHONE,
            email=settings.COMPANY_EMAIL,
            vat_number=settings.COMPANY_VAT_NUMBER,
        ),
        vat_rate=settings.VAT_RATE,
        free_delivery_threshold=settings.FREE_DELIVERY_THRESHOLD,
        currency=settings.CURRENCY_SYMBOL,
    )

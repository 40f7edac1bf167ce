import asyncio
from sqlalchemy import text
from orderform.core.config import settings
from orderform.core.db import SessionLocal

async def main():
    print("JWT_ISSUER:", settings.JWT_ISSUER)
    print("JWT_AUDIENCE:", settings.JWT_AUDIENCE)
    print("ORDER_TOKEN_AUDIENCE:", settings.ORDER_TOKEN_AUDIENCE)
    print("ORDER_RATE_LIMIT:", settings.ORDER_RATE_LIMIT, "per", settings.ORDER_RATE_WINDOW_SECONDS, "s")
    print("SMTP:", f"{settings.SMTP_HOST}:{settings.SMTP_PORT}", "ssl" if settings.SMTP_USE_SSL else "starttls")
    print("COMPANY_EMAIL:", settings.COMPANY_EMAIL or "(not set)")
    async with SessionLocal() as s:
        r = await s.execute(text("SELECT COUNT(*) FROM access_codes"))
        print("access_codes rows:", r.scalar())

if __name__ == "__main__":
    asyncio.run(main())

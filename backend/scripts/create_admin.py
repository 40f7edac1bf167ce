"""Create the tables and the first administrator.

Credentials come from ADMIN_BOOTSTRAP_EMAIL / ADMIN_BOOTSTRAP_PASSWORD.
Refuses to run once an administrator exists.
"""

import asyncio
import sys

from orderform.core.config import settings
from orderform.core.db import SessionLocal, create_all
from orderform.services.admin_users import AdminAlreadyExists, bootstrap_admin


async def main() -> int:
    if not settings.ADMIN_BOOTSTRAP_EMAIL or not settings.ADMIN_BOOTSTRAP_PASSWORD:
        print("ADMIN_BOOTSTRAP_EMAIL and ADMIN_BOOTSTRAP_PASSWORD must be set", flush=True)
        return 1

    await create_all()
    async with SessionLocal() as session:
        try:
            user = await bootstrap_admin(
                session,
                settings.ADMIN_BOOTSTRAP_EMAIL,
                settings.ADMIN_BOOTSTRAP_PASSWORD,
            )
        except AdminAlreadyExists as exc:
            print(f"Skipped: {exc}", flush=True)
            return 1
        except ValueError as exc:
            print(f"Error: {exc}", flush=True)
            return 1
    print(f"Administrator created: {user.email}", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

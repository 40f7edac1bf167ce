import os
import sys
from email.message import EmailMessage
from pathlib import Path

import pytest

# Ensure required environment variables are present before settings import
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///./orderform-test.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("COMPANY_NAME", "Example Lights SRL")
os.environ.setdefault("COMPANY_EMAIL", "orders@example.com")
os.environ.setdefault("SMTP_USER", "noreply@example.com")

# Add the backend directory so `orderform` package imports resolve during tests
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.append(str(BACKEND_DIR))


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeMailer:
    """Records messages instead of talking to an SMTP server."""

    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.fail_for: set[str] = set()

    def send(self, message: EmailMessage) -> None:
        from orderform.utils.email import MailDeliveryError

        if message["To"] in self.fail_for:
            raise MailDeliveryError(f"550 mailbox unavailable: {message['To']}")
        self.sent.append(message)

    @property
    def recipients(self) -> list[str]:
        return [m["To"] for m in self.sent]


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
async def engine(tmp_path):
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import NullPool

    from orderform.core.db import create_all

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'orderform.db'}", poolclass=NullPool
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    from sqlalchemy.ext.asyncio import async_sessionmaker

    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def create_code(session_factory):
    from orderform.models.access_code import AccessCode

    async def _create(code: str = "ABCD1234", **fields) -> AccessCode:
        async with session_factory() as session:
            record = AccessCode(code=code, **fields)
            session.add(record)
            await session.commit()
            return record

    return _create


@pytest.fixture
def notifier(mailer):
    from orderform.core.config import settings
    from orderform.services.notifier import OrderNotifier

    return OrderNotifier(mailer, settings)


@pytest.fixture
async def client(session_factory, notifier):
    from httpx import ASGITransport, AsyncClient

    from orderform.core.db import get_session
    from orderform.core.rate_limit import OrderRateLimiter
    from orderform.main import app

    async def _get_session():
        async with session_factory() as session:
            yield session

    previous = (app.state.order_rate_limiter, app.state.order_notifier)
    app.dependency_overrides[get_session] = _get_session
    app.state.order_rate_limiter = OrderRateLimiter(limit=5, window_seconds=3600)
    app.state.order_notifier = notifier
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as http:
            yield http
    finally:
        app.dependency_overrides.clear()
        app.state.order_rate_limiter, app.state.order_notifier = previous


@pytest.fixture
def admin_headers(session_factory):
    from orderform.core.security import create_access_token
    from orderform.services.admin_users import create_admin

    async def _headers(email: str = "admin@example.com", role: str = "admin") -> dict[str, str]:
        async with session_factory() as session:
            user = await create_admin(session, email, "correct horse battery", role=role)
            await session.commit()
        token = create_access_token({"sub": user.id, "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


def build_order_payload(token: str | None = None, **overrides) -> dict:
    payload = {
        "date": "17/10/2026",
        "company": {
            "name": "Example Lights SRL",
            "director": "Jane Doe",
            "address": "Rue Exemple 1",
            "postalCode": "1000 Brussels",
            "phone": "+32 2 000 00 00",
            "email": "orders@example.com",
            "vatNumber": "BE0000000000",
        },
        "client": {
            "name": "Alex Martin",
            "company": "Aquatics BV",
            "address": "Main street 5",
            "postalCode": "2000 Antwerp",
            "phone": "+32 3 000 00 00",
            "email": "alex@example.org",
        },
        "items": [
            {
                "productId": "cable-120",
                "productName": "Cable",
                "size": "120cm",
                "quantity": 2,
                "unitPrice": 3.50,
                "total": 7.00,
            }
        ],
        "subtotal": 7.00,
    }
    if token is not None:
        payload["accessToken"] = token
    payload.update(overrides)
    return payload


@pytest.fixture
def order_payload():
    return build_order_payload

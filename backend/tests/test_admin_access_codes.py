import pytest
from sqlalchemy import select

from orderform.core.security import verify_order_token
from orderform.models.audit_log import AuditLog
from orderform.services.access_codes import CODE_ALPHABET

BASE = "/api/admin/access-codes"


@pytest.mark.anyio
async def test_login_and_me(client, admin_headers):
    await admin_headers("boss@example.com")

    login = await client.post(
        "/api/auth/login",
        json={"email": "Boss@Example.com", "password": "correct horse battery"},
    )
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "boss@example.com"
    assert me.json()["last_login_at"] is not None


@pytest.mark.anyio
async def test_login_with_wrong_password_is_audited(client, admin_headers, session_factory):
    await admin_headers("boss@example.com")

    response = await client.post(
        "/api/auth/login", json={"email": "boss@example.com", "password": "wrong password"}
    )

    assert response.status_code == 401
    async with session_factory() as session:
        actions = (await session.execute(select(AuditLog.action))).scalars().all()
    assert "LOGIN_FAILED" in actions


@pytest.mark.anyio
async def test_create_random_code(client, admin_headers):
    headers = await admin_headers()

    response = await client.post(BASE, json={"expiresInHours": 24}, headers=headers)

    assert response.status_code == 201
    body = response.json()
    assert len(body["code"]) == 8
    assert set(body["code"]) <= set(CODE_ALPHABET)
    assert body["status"] == "active"
    assert body["expires_at"] is not None


@pytest.mark.anyio
async def test_created_code_can_be_validated(client, admin_headers):
    headers = await admin_headers()
    created = await client.post(BASE, json={"customCode": "hello123"}, headers=headers)
    assert created.json()["code"] == "HELLO123"

    response = await client.post("/api/validate-access-code", json={"code": "HELLO123"})

    assert response.json()["valid"] is True


@pytest.mark.anyio
async def test_duplicate_custom_code_conflicts(client, admin_headers, create_code):
    headers = await admin_headers()
    await create_code("TAKEN001")

    response = await client.post(BASE, json={"customCode": "TAKEN001"}, headers=headers)

    assert response.status_code == 409


@pytest.mark.anyio
@pytest.mark.parametrize("custom", ["SHORT", "HAS-DASH", "WAYTOOLONG1"])
async def test_malformed_custom_code_rejected(client, admin_headers, custom):
    headers = await admin_headers()

    response = await client.post(BASE, json={"customCode": custom}, headers=headers)

    assert response.status_code == 400


@pytest.mark.anyio
async def test_create_with_notify_emails_company(client, admin_headers, mailer):
    headers = await admin_headers()

    response = await client.post(
        BASE, json={"customCode": "MAIL0001", "notify": True}, headers=headers
    )

    assert response.status_code == 201
    assert mailer.recipients == ["orders@example.com"]
    assert "MAIL0001" in mailer.sent[0].get_body(preferencelist=("plain",)).get_content()


@pytest.mark.anyio
async def test_list_codes_with_status(client, admin_headers, create_code):
    headers = await admin_headers()
    await create_code("LIST0001")
    await create_code("LIST0002", is_active=False)
    await create_code("LIST0003", is_used=True)

    response = await client.get(BASE, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    statuses = {item["code"]: item["status"] for item in body["items"]}
    assert statuses == {"LIST0001": "active", "LIST0002": "inactive", "LIST0003": "used"}


@pytest.mark.anyio
async def test_deactivated_code_cannot_be_used(client, admin_headers, create_code):
    headers = await admin_headers()
    await create_code("DEAC0001")

    response = await client.post(f"{BASE}/deac0001/deactivate", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "inactive"

    validated = await client.post("/api/validate-access-code", json={"code": "DEAC0001"})
    assert validated.json()["valid"] is False


@pytest.mark.anyio
async def test_delete_keeps_issued_tokens_valid(client, admin_headers, create_code):
    headers = await admin_headers()
    await create_code("GONE0001")
    token = (
        await client.post("/api/validate-access-code", json={"code": "GONE0001"})
    ).json()["accessToken"]

    response = await client.delete(f"{BASE}/GONE0001", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert verify_order_token(token) is True
    again = await client.delete(f"{BASE}/GONE0001", headers=headers)
    assert again.status_code == 404


@pytest.mark.anyio
async def test_unknown_code_not_found(client, admin_headers):
    headers = await admin_headers()

    response = await client.post(f"{BASE}/NOPE0000/deactivate", headers=headers)

    assert response.status_code == 404


@pytest.mark.anyio
async def test_requires_authentication(client):
    assert (await client.get(BASE)).status_code == 401
    assert (await client.post(BASE, json={})).status_code == 401


@pytest.mark.anyio
async def test_order_token_is_not_an_admin_token(client, create_code):
    await create_code("ABCD1234")
    token = (
        await client.post("/api/validate-access-code", json={"code": "ABCD1234"})
    ).json()["accessToken"]

    response = await client.get(BASE, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.anyio
async def test_non_admin_role_forbidden(client, admin_headers):
    headers = await admin_headers("viewer@example.com", role="viewer")

    response = await client.get(BASE, headers=headers)

    assert response.status_code == 403

"""Access code consumption: single use, expiry, deactivation, races."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from orderform.core.security import verify_order_access_token
from orderform.models.access_code import AccessCode
from orderform.services import access_codes
from orderform.services.access_codes import (
    INVALID_CODE_MESSAGE,
    consume_access_code,
    validate_access_code,
)


@pytest.mark.anyio
async def test_code_is_exchanged_for_token_once(client, create_code):
    await create_code("ABCD1234")

    first = await client.post("/api/validate-access-code", json={"code": "ABCD1234"})
    assert first.status_code == 200
    body = first.json()
    assert body["valid"] is True
    assert body["accessToken"]
    assert verify_order_access_token(body["accessToken"]) is not None

    second = await client.post("/api/validate-access-code", json={"code": "ABCD1234"})
    assert second.status_code == 200
    assert second.json() == {"valid": False, "message": INVALID_CODE_MESSAGE}


@pytest.mark.anyio
async def test_code_is_normalized(client, create_code):
    await create_code("ABCD1234")

    response = await client.post("/api/validate-access-code", json={"code": "  abcd1234 "})

    assert response.json()["valid"] is True


@pytest.mark.anyio
async def test_missing_code_is_bad_request(client):
    response = await client.post("/api/validate-access-code", json={"code": "   "})

    assert response.status_code == 400
    assert response.json()["valid"] is False


@pytest.mark.anyio
@pytest.mark.parametrize(
    "fields",
    [
        {"is_used": True, "used_at": datetime(2026, 1, 1, tzinfo=timezone.utc)},
        {"is_active": False},
        {"expires_at": datetime(2020, 1, 1, tzinfo=timezone.utc)},
    ],
    ids=["used", "inactive", "expired"],
)
async def test_unusable_codes_share_one_message(client, create_code, fields):
    await create_code("ZXCV5678", **fields)

    unusable = await client.post("/api/validate-access-code", json={"code": "ZXCV5678"})
    unknown = await client.post("/api/validate-access-code", json={"code": "NOPE0000"})

    assert unusable.json() == unknown.json() == {
        "valid": False,
        "message": INVALID_CODE_MESSAGE,
    }


@pytest.mark.anyio
async def test_expired_code_fails_even_if_active_and_unused(session_factory, create_code):
    now = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
    await create_code("EXPD0001", expires_at=now - timedelta(seconds=1))

    async with session_factory() as session:
        result = await validate_access_code(session, "EXPD0001", now=now)

    assert result.valid is False
    assert result.access_token is None
    async with session_factory() as session:
        record = await access_codes.get_access_code(session, "EXPD0001")
        assert record.is_used is False


@pytest.mark.anyio
async def test_code_with_future_expiry_is_accepted(session_factory, create_code):
    now = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
    await create_code("LATE0001", expires_at=now + timedelta(hours=1))

    async with session_factory() as session:
        result = await validate_access_code(session, "LATE0001", now=now)

    assert result.valid is True
    claims = verify_order_access_token(result.access_token, now=now + timedelta(seconds=1))
    assert claims is not None


@pytest.mark.anyio
async def test_interleaved_consumption_has_one_winner(session_factory, create_code):
    record = await create_code("RACE0001")

    # Both requests have already read the code as unused.
    async with session_factory() as first, session_factory() as second:
        assert (await first.get(AccessCode, record.id)).is_used is False
        assert (await second.get(AccessCode, record.id)).is_used is False

        won_first = await consume_access_code(first, record.id)
        await first.commit()
        won_second = await consume_access_code(second, record.id)
        await second.commit()

    assert [won_first, won_second] == [True, False]


@pytest.mark.anyio
async def test_concurrent_validation_has_one_success(session_factory, create_code):
    await create_code("RACE0002")

    async def attempt():
        async with session_factory() as session:
            return await validate_access_code(session, "RACE0002")

    results = await asyncio.gather(attempt(), attempt())

    assert sorted(r.valid for r in results) == [False, True]
    assert sum(1 for r in results if r.access_token) == 1


@pytest.mark.anyio
async def test_store_failure_issues_no_token(client, create_code, monkeypatch):
    await create_code("FAIL0001")

    async def broken_consume(*_args, **_kwargs):
        raise OperationalError("UPDATE access_codes", {}, Exception("disk I/O error"))

    monkeypatch.setattr(access_codes, "consume_access_code", broken_consume)

    response = await client.post("/api/validate-access-code", json={"code": "FAIL0001"})

    assert response.status_code == 500
    body = response.json()
    assert body["valid"] is False
    assert "accessToken" not in body
    assert "disk" not in body["message"]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "body",
    [{"code": 12345678}, {"code": ["ABCD1234"]}, ["ABCD1234"], "ABCD1234"],
    ids=["number", "list-code", "array-body", "string-body"],
)
async def test_malformed_body_gets_form_message(client, create_code, body):
    await create_code("ABCD1234")

    response = await client.post("/api/validate-access-code", json=body)

    assert response.status_code == 400
    assert response.json() == {"valid": False, "message": "Access code is required"}


@pytest.mark.anyio
async def test_invalid_json_gets_form_message(client):
    response = await client.post(
        "/api/validate-access-code",
        content=b"{code:",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["valid"] is False

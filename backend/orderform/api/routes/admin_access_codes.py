from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orderform.core.audit import log_audit
from orderform.core.db import get_session
from orderform.core.deps import get_current_admin
from orderform.models.admin_user import AdminUser
from orderform.schemas.access_code import AccessCodeCreate, AccessCodeListOut, AccessCodeOut
from orderform.services.access_codes import (
    DuplicateAccessCode,
    InvalidCodeFormat,
    create_access_code,
    deactivate_access_code,
    delete_access_code,
    list_access_codes,
)
from orderform.services.notifier import OrderNotifier, get_order_notifier

router = APIRouter(prefix="/admin/access-codes", tags=["admin"])


def _remote_addr(request: Request):
    return request.client.host if request.client else None


@router.post("", response_model=AccessCodeOut, status_code=status.HTTP_201_CREATED)
async def create_code(
    payload: AccessCodeCreate,
    request: Request,
    session: AsyncSession = Depends(get_session),
    admin: AdminUser = Depends(get_current_admin),
    notifier: OrderNotifier = Depends(get_order_notifier),
):
    try:
        record = await create_access_code(
            session,
            custom_code=payload.custom_code,
            expires_in_hours=payload.expires_in_hours,
            created_by=admin.id,
        )
        await log_audit(
            session,
            admin.id,
            "access_code",
            record.id,
            "CREATE",
            details={
                "custom": bool(payload.custom_code),
                "expires_in_hours": payload.expires_in_hours,
            },
            remote_addr=_remote_addr(request),
        )
        await session.commit()
    except InvalidCodeFormat as exc:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except (DuplicateAccessCode, IntegrityError):
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Access code already exists"
        )

    logger.bind(code_id=record.id).info("access_code_created")
    if payload.notify:
        # The code is committed either way; a mail failure surfaces as a 500.
        await notifier.send_access_code(record.code, record.expires_at)
    return record


@router.get("", response_model=AccessCodeListOut)
async def list_codes(
    request: Request,
    limit: int = 50,
    offset: int = 0,
    session: AsyncSession = Depends(get_session),
    admin: AdminUser = Depends(get_current_admin),
):
    limit = max(1, min(limit, 500))
    offset = max(0, offset)
    items, total = await list_access_codes(session, limit=limit, offset=offset)

    await log_audit(
        session,
        admin.id,
        "access_code",
        None,
        "LIST",
        details={"limit": limit, "offset": offset, "count": len(items)},
        remote_addr=_remote_addr(request),
        independent_txn=True,
    )

    return AccessCodeListOut(
        items=[AccessCodeOut.model_validate(item) for item in items], total=total
    )


@router.post("/{code}/deactivate", response_model=AccessCodeOut)
async def deactivate_code(
    code: str,
    request: Request,
    session: AsyncSession = Depends(get_session),
    admin: AdminUser = Depends(get_current_admin),
):
    record = await deactivate_access_code(session, code)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Access code not found"
        )

    await log_audit(
        session,
        admin.id,
        "access_code",
        record.id,
        "DEACTIVATE",
        details=None,
        remote_addr=_remote_addr(request),
    )
    await session.commit()
    return record


@router.delete("/{code}")
async def delete_code(
    code: str,
    request: Request,
    session: AsyncSession = Depends(get_session),
    admin: AdminUser = Depends(get_current_admin),
):
    if not await delete_access_code(session, code):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Access code not found"
        )

    # Tokens already issued for this code stay valid until they expire.
    await log_audit(
        session,
        admin.id,
        "access_code",
        code.strip().upper(),
        "DELETE",
        details=None,
        remote_addr=_remote_addr(request),
    )
    await session.commit()
    return {"success": True}

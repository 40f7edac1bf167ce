from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from orderform.core.config import settings
from orderform.core.db import get_session
from orderform.core.rate_limit import limiter
from orderform.schemas.access_code import AccessCodeValidationIn, AccessCodeValidationOut
from orderform.services.access_codes import normalize_code, validate_access_code

router = APIRouter(tags=["access"])

CODE_REQUIRED_MESSAGE = "Access code is required"


def _rejected(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"valid": False, "message": message})


@router.post(
    "/validate-access-code",
    response_model=AccessCodeValidationOut,
    response_model_exclude_none=True,
)
@limiter.limit(settings.ACCESS_CODE_VALIDATE_RATE)
async def validate_code(
    request: Request,
    session: AsyncSession = Depends(get_session),
):
    # The body is parsed here so that every bad input still gets {valid, message}.
    try:
        payload = AccessCodeValidationIn.model_validate(await request.json())
    except (ValueError, ValidationError):
        logger.bind(reason="malformed_body").info("access_code_rejected")
        return _rejected(status.HTTP_400_BAD_REQUEST, CODE_REQUIRED_MESSAGE)

    if not normalize_code(payload.code):
        return _rejected(status.HTTP_400_BAD_REQUEST, CODE_REQUIRED_MESSAGE)

    try:
        result = await validate_access_code(
            session,
            payload.code,
            remote_addr=(request.client.host if request.client else None),
        )
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("access_code_validation_failed")
        return _rejected(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "The access code could not be checked. Please try again.",
        )

    return AccessCodeValidationOut(
        valid=result.valid,
        message=result.message,
        access_token=result.access_token,
    )

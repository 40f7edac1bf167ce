"""Loguru setup shared by the API and the scripts.

Every record carries ``request_id`` and ``actor`` taken from context
variables that ``RequestContextLogMiddleware`` and the auth dependency set.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from sys import stdout
from typing import Any

from loguru import logger

from orderform.core.config import settings

request_id_ctx_var: ContextVar[str] = ContextVar("request_id", default="-")
actor_ctx_var: ContextVar[str] = ContextVar("actor", default="-")

TEXT_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[request_id]} | "
    "{extra[actor]} | {message}"
)


def _patch_record(record: dict[str, Any]) -> None:
    record["extra"].setdefault("request_id", request_id_ctx_var.get())
    record["extra"].setdefault("actor", actor_ctx_var.get())


def setup_logging(level: str | None = None, *, json: bool | None = None) -> None:
    level = (level or settings.LOG_LEVEL).upper()
    json = settings.LOG_JSON if json is None else json

    logging.basicConfig(level=level)
    # passlib warns about the bcrypt version on every hash.
    logging.getLogger("passlib.handlers.bcrypt").setLevel(logging.ERROR)
    logger.remove()
    logger.configure(patcher=_patch_record)
    if json:
        logger.add(stdout, level=level, enqueue=True, diagnose=False, serialize=True)
    else:
        logger.add(stdout, level=level, enqueue=True, diagnose=False, format=TEXT_FORMAT)

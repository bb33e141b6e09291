"""Response envelope and exception handlers.

Every response is sent with HTTP 200; the outcome is carried in the body's
``code`` field.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from neko_blog.core.errors import NekoError, ResponseCode
from neko_blog.schemas.common import Envelope

logger = logging.getLogger(__name__)


def ok(data: Any = None, message: str = "succeed") -> Envelope:
    """Wrap a successful result in the response envelope."""
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return Envelope(code=ResponseCode.SUCCESS, message=message, data=data)


def _error(code: ResponseCode, message: str) -> JSONResponse:
    body = Envelope(code=code, message=message).model_dump(mode="json")
    return JSONResponse(status_code=status.HTTP_200_OK, content=body)


async def neko_error_handler(request: Request, exc: NekoError) -> JSONResponse:
    if exc.code >= ResponseCode.SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "")
    else:
        message = "invalid parameter"
    return _error(ResponseCode.PARAMETER_ERROR, message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        code = ResponseCode.AUTH_ERROR
    elif exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR:
        code = ResponseCode.PARAMETER_ERROR
    else:
        code = ResponseCode.SERVER_ERROR
    return _error(code, str(exc.detail))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error while handling %s %s", request.method, request.url.path)
    return _error(ResponseCode.SERVER_ERROR, "internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NekoError, neko_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

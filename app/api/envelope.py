"""Build envelope responses and render every error path (ours, FastAPI's, Starlette's) as one."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.errors import HTTP_STATUS, ApiError, ErrorCode
from app.core.messages import error_message, success_message
from app.schemas.envelope import Envelope, FieldIssue

logger = logging.getLogger(__name__)


def _as_list(data: Any) -> list[Any]:
    if data is None:
        return []
    items = data if isinstance(data, list) else [data]
    return [
        item.model_dump(by_alias=True, mode="json") if isinstance(item, BaseModel) else item
        for item in items
    ]


def success(code: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    envelope = Envelope(
        status="success",
        code=code,
        message=success_message(code, get_settings().MESSAGE_LOCALE),
        data=_as_list(data),
    )
    return JSONResponse(status_code=status_code, content=envelope.model_dump(mode="json"))


def failure(
    code: ErrorCode,
    detail: Any = None,
    message: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    envelope = Envelope(
        status="error",
        code=code.value,
        message=message or error_message(code, get_settings().MESSAGE_LOCALE),
        data=_as_list(detail),
    )
    return JSONResponse(
        status_code=HTTP_STATUS[code],
        content=envelope.model_dump(mode="json"),
        headers=headers,
    )


async def api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return failure(exc.code, exc.detail, headers=headers)


async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        issues.append(FieldIssue(field=".".join(loc) or "body", message=str(err.get("msg", ""))))
    message = "; ".join(
        f"{issue.field}: {issue.message}" if issue.field != "body" else issue.message
        for issue in issues
    )
    return failure(ErrorCode.BAD_REQUEST, issues, message=message or None)


async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        return failure(ErrorCode.METHOD_NOT_ALLOWED, headers=getattr(exc, "headers", None))
    if exc.status_code == 404:
        return failure(ErrorCode.NOT_FOUND)
    code = ErrorCode.BAD_REQUEST if exc.status_code < 500 else ErrorCode.INTERNAL_ERROR
    response = failure(code, exc.detail)
    response.status_code = exc.status_code
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"route": request.url.path})
    return failure(ErrorCode.INTERNAL_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

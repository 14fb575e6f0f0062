# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Uniform response envelope.

Every endpoint answers with::

    {"statusCode": 200, "data": ..., "message": "...", "success": true}

``success`` is derived from the status code.  Error responses use the same
shape with ``data = null`` plus an ``errors`` list; they are produced by the
exception handlers registered in :func:`register_exception_handlers`.
"""

from typing import Any, Iterable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logger import logger


class ApiResponse(BaseModel):
    statusCode: int
    data: Any = None
    message: str = "Success"
    success: bool = True


def api_response(status_code: int, data: Any = None, message: str = "Success") -> ApiResponse:
    return ApiResponse(
        statusCode=status_code,
        data=data,
        message=message,
        success=status_code < 400,
    )


def serialize(schema: type[BaseModel], obj) -> dict:
    """ORM instance → JSON-ready dict using *schema*'s camelCase aliases."""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


def serialize_all(schema: type[BaseModel], objs: Iterable) -> list[dict]:
    return [serialize(schema, obj) for obj in objs]


def error_response(status_code: int, message: str, errors: list | None = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "data": None,
            "message": message,
            "success": False,
            "errors": errors or [],
        },
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(
        exc.status_code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema failures are client errors: 400 with one entry per bad field."""
    errors = []
    for err in exc.errors():
        # loc is ("body", "field", ...) / ("query", "page") – drop the source
        loc = [str(part) for part in err.get("loc", ())[1:]]
        errors.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})

    message = errors[0]["message"] if len(errors) == 1 else "Invalid request data"
    if len(errors) == 1 and errors[0]["field"] != "body":
        message = f"{errors[0]['field']}: {errors[0]['message']}"

    logger.info("%s %s rejected: %s", request.method, request.url.path, errors)
    return error_response(status.HTTP_400_BAD_REQUEST, message, errors)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)

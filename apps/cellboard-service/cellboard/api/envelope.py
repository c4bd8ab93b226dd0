"""
JSON response envelope.

Every endpoint answers ``{"status": "SUCCESS"|"ERROR", "data": ..., "message": ...}``;
errors raised as ``HTTPException`` or request validation failures are
rendered in the same shape.
"""
from typing import Any, Optional

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse


def success(data: Any = None, message: Optional[str] = None) -> dict:
    return {"status": "SUCCESS", "data": jsonable_encoder(data), "message": message}


def error_body(message: str, data: Any = None) -> dict:
    return {"status": "ERROR", "data": data, "message": message}


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    data = None if isinstance(exc.detail, str) else jsonable_encoder(exc.detail)
    return JSONResponse(error_body(message, data), status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    first = errors[0].get("msg") if errors else "Invalid request"
    return JSONResponse(error_body(f"Validation failed: {first}", errors), status_code=422)

# backend/servicehub/errors.py
"""
Unified error envelope.

Every error response carries the same problem shape:
{"type", "title", "status", "detail", "instance", "code", "errors"}.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import (
    DomainException,
    RepositoryException,
    StoreUnavailableException,
    is_transient_db_error,
)

logger = logging.getLogger(__name__)


def _title_from_status(status_code: int) -> str:
    mapping = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        409: "Conflict",
        422: "Unprocessable Entity",
        500: "Internal Server Error",
        503: "Service Unavailable",
    }
    return mapping.get(status_code, "Error")


def _problem(
    *,
    status: int,
    detail: Optional[str] = None,
    instance: Optional[str] = None,
    code: Optional[str] = None,
    errors: Optional[Any] = None,
) -> Dict[str, Any]:
    problem: Dict[str, Any] = {
        "type": "about:blank",
        "title": _title_from_status(status),
        "status": status,
        "detail": detail or "",
        "instance": instance or "",
    }
    if code:
        problem["code"] = code
    if errors is not None:
        problem["errors"] = errors
    return problem


def _parse_detail(detail: Any) -> tuple[Optional[str], Optional[str], Optional[Any]]:
    if isinstance(detail, dict):
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        message = detail.get("message") or detail.get("detail")
        detail_text = message if isinstance(message, str) else None
        errors = detail.get("details") or detail.get("errors")
        return detail_text, code, errors
    if isinstance(detail, str):
        return detail, None, None
    if detail is None:
        return None, None, None
    return str(detail), None, None


def _domain_response(request: Request, exc: DomainException) -> JSONResponse:
    http_exc = exc.to_http_exception()
    problem = _problem(
        status=http_exc.status_code,
        detail=exc.message,
        instance=request.url.path,
        code=exc.code,
        errors=jsonable_encoder(exc.details) if exc.details else None,
    )
    return JSONResponse(problem, status_code=http_exc.status_code, headers=http_exc.headers)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        detail_text, code, errors = _parse_detail(exc.detail)
        problem = _problem(
            status=exc.status_code,
            detail=detail_text,
            instance=request.url.path,
            code=code,
            errors=jsonable_encoder(errors) if errors else None,
        )
        return JSONResponse(problem, status_code=exc.status_code, headers=exc.headers)

    # Raised from dependencies, before a route body can translate it
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        return _domain_response(request, exc)

    # Database failures that escaped the service layer untranslated
    @app.exception_handler(SQLAlchemyError)
    @app.exception_handler(RepositoryException)
    async def database_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        if is_transient_db_error(exc):
            logger.warning(f"Store unavailable on {request.url.path}: {exc}")
            return _domain_response(request, StoreUnavailableException())
        logger.error(f"Unhandled database error on {request.url.path}: {exc}")
        return JSONResponse(
            _problem(
                status=500,
                detail="Database operation failed",
                instance=request.url.path,
                code="DATABASE_ERROR",
            ),
            status_code=500,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        detail_list = jsonable_encoder(exc.errors())
        return JSONResponse(
            _problem(
                status=422,
                detail="Request validation failed",
                instance=request.url.path,
                code="validation_error",
                errors=detail_list,
            ),
            status_code=422,
        )

# backend/servicehub/routes/v1/__init__.py
"""
API v1 routers.

Each module exposes a `router` without a prefix; prefixes are applied when
the routers are mounted under /api/v1 in main.py.
"""

from typing import NoReturn

from fastapi import HTTPException, status

from ...core.exceptions import DomainException


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

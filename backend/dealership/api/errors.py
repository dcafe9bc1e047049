"""
HTTP rendering of domain errors.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dealership.core.exceptions import DealershipError, UnauthorizedError
from dealership.core.logging import get_logger

logger = get_logger("errors")


async def dealership_error_handler(request: Request, exc: DealershipError) -> JSONResponse:
    """Render a domain error as ``{"detail", "code"}`` with its status code."""
    headers = None
    if isinstance(exc, UnauthorizedError):
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DealershipError, dealership_error_handler)

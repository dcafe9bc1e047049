"""
Service boundary: the one place unexpected collaborator failures are turned
into domain errors.

Domain errors raised inside pass through unchanged. Repository signals are
translated (duplicate email → 409, missing row → 404). Anything else is
logged with its stack and re-raised as ``InternalError`` with a generic
message, so driver or SDK text never reaches a client.
"""

from contextlib import asynccontextmanager
from typing import Any

from dealership.core.exceptions import (
    AccountNotFoundError,
    ConflictError,
    DealershipError,
    DuplicateEmailError,
    InternalError,
    NotFoundError,
)
from dealership.core.logging import get_logger

logger = get_logger("services")


@asynccontextmanager
async def service_boundary(operation: str, **context: Any):
    try:
        yield
    except DealershipError:
        raise
    except DuplicateEmailError as exc:
        raise ConflictError("Email already in use", code="EMAIL_IN_USE") from exc
    except AccountNotFoundError as exc:
        raise NotFoundError("Account not found", code="ACCOUNT_NOT_FOUND") from exc
    except Exception as exc:
        logger.exception("Unexpected failure in %s %s", operation, context or "")
        raise InternalError(
            "The operation could not be completed. Please try again later."
        ) from exc

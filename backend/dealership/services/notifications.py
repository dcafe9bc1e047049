"""
Notification policy.

Every email the account services send goes through ``notify``. The caller
states up front whether a failed delivery aborts the operation (FATAL) or is
only logged (BEST_EFFORT).
"""

import enum
import uuid
from collections.abc import Awaitable
from typing import Protocol

from dealership.core.exceptions import InternalError
from dealership.core.logging import get_logger
from dealership.models.account import AccountRole

logger = get_logger("notifications")


class NotificationPolicy(str, enum.Enum):
    FATAL = "fatal"
    BEST_EFFORT = "best_effort"


class Notifier(Protocol):
    """Outbound account emails. Each returns True once handed to a provider."""

    async def send_verification_email(self, to: str, token: str) -> bool: ...

    async def send_admin_account_setup(self, to: str, temporary_password: str, token: str) -> bool: ...

    async def send_seller_account_setup(
        self, to: str, name: str, temporary_password: str, token: str
    ) -> bool: ...

    async def send_recover_password(self, to: str, reset_url: str) -> bool: ...

    async def send_password_changed_confirmation(self, to: str, role: AccountRole) -> bool: ...

    async def send_email_changed_confirmation(self, to: str, role: AccountRole) -> bool: ...


async def notify(
    delivery: Awaitable[bool],
    *,
    policy: NotificationPolicy,
    operation: str,
    account_id: uuid.UUID | None,
) -> bool:
    """
    Await one delivery and apply ``policy`` to its outcome.

    A raised error and an undelivered message (``False``) are both failures.
    FATAL failures raise ``InternalError``; BEST_EFFORT failures are logged
    at ERROR with the operation and account id and reported as ``False``.
    """
    error: Exception | None = None
    try:
        delivered = await delivery
    except Exception as exc:
        error = exc
        delivered = False

    if delivered:
        return True

    if policy is NotificationPolicy.FATAL:
        logger.error(
            "Required notification %s failed for account %s: %s",
            operation, account_id, error or "no provider delivered the message",
            exc_info=error,
        )
        raise InternalError(
            "The account email could not be sent. Please try again later.",
            code="NOTIFICATION_FAILED",
        ) from error

    logger.error(
        "Notification %s failed for account %s (continuing): %s",
        operation, account_id, error or "no provider delivered the message",
        exc_info=error,
    )
    return False

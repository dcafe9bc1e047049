import logging
import uuid

import pytest

from dealership.core.exceptions import InternalError, NotificationError
from dealership.services.notifications import NotificationPolicy, notify


async def _delivered():
    return True


async def _undelivered():
    return False


async def _raising():
    raise NotificationError("provider down", "u@x.com")


@pytest.mark.asyncio
async def test_delivered_message_is_success_under_both_policies():
    for policy in NotificationPolicy:
        assert await notify(_delivered(), policy=policy, operation="op", account_id=None) is True


@pytest.mark.asyncio
@pytest.mark.parametrize("delivery", [_undelivered, _raising])
async def test_fatal_failure_raises_internal_error(delivery):
    with pytest.raises(InternalError) as exc:
        await notify(
            delivery(), policy=NotificationPolicy.FATAL, operation="register_admin", account_id=uuid.uuid4()
        )
    assert exc.value.code == "NOTIFICATION_FAILED"
    assert "provider down" not in exc.value.message


@pytest.mark.asyncio
@pytest.mark.parametrize("delivery", [_undelivered, _raising])
async def test_best_effort_failure_is_logged_and_reported(delivery, caplog):
    account_id = uuid.uuid4()

    with caplog.at_level(logging.ERROR, logger="dealership.notifications"):
        result = await notify(
            delivery(), policy=NotificationPolicy.BEST_EFFORT, operation="register", account_id=account_id
        )

    assert result is False
    [record] = [r for r in caplog.records if r.name == "dealership.notifications"]
    assert record.levelno == logging.ERROR
    assert "register" in record.getMessage()
    assert str(account_id) in record.getMessage()

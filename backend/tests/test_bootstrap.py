import pytest

from conftest import PASSWORD
from dealership.core.security import verify_password
from dealership.create_admin import build_parser, create_or_update_admin
from dealership.models.account import AccountRole
from dealership.seed import seed_default_admin


def _seed_settings(settings, email="root@auto2g.it", password="root-password"):
    return settings.model_copy(update={"DEFAULT_ADMIN_EMAIL": email, "DEFAULT_ADMIN_PASSWORD": password})


# ── Startup seed ─────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_seed_creates_verified_system_admin_once(repo, settings):
    seeded = _seed_settings(settings, email=" Root@Auto2G.it ")

    created = await seed_default_admin(repo, seeded)
    again = await seed_default_admin(repo, seeded)

    assert created.email == "root@auto2g.it"
    assert created.role is AccountRole.SYSTEM_ADMIN
    assert (created.name, created.surname) == ("SYSTEM", "ADMIN")
    assert created.verified and created.active
    assert verify_password("root-password", created.hashed_password)
    assert again is None
    assert len(repo.rows) == 1


@pytest.mark.asyncio
async def test_seed_skipped_without_credentials(repo, settings):
    assert await seed_default_admin(repo, _seed_settings(settings, password="")) is None
    assert repo.rows == {}


# ── create_admin CLI ─────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_cli_creates_system_admin(repo):
    args = build_parser().parse_args(["--email", "Boss@X.com", "--password", "long-enough-pw"])

    outcome = await create_or_update_admin(repo, args)

    [account] = repo.rows.values()
    assert outcome == "created"
    assert account.email == "boss@x.com"
    assert account.role is AccountRole.SYSTEM_ADMIN
    assert account.verified is True


@pytest.mark.asyncio
async def test_cli_refuses_to_promote_without_flag(repo):
    customer = await repo.add("c@x.com")
    args = build_parser().parse_args(["--email", "c@x.com", "--role", "admin", "--password", "long-enough-pw"])

    with pytest.raises(ValueError):
        await create_or_update_admin(repo, args)
    assert repo.rows[customer.id].role is AccountRole.CUSTOMER

    args = build_parser().parse_args(
        ["--email", "c@x.com", "--role", "admin", "--password", "long-enough-pw", "--promote-existing"]
    )
    assert await create_or_update_admin(repo, args) == "updated"
    assert repo.rows[customer.id].role is AccountRole.ADMIN
    assert verify_password(PASSWORD, repo.rows[customer.id].hashed_password)


@pytest.mark.asyncio
async def test_cli_resets_password_only_when_asked(repo):
    admin = await repo.add("a@x.com", AccountRole.ADMIN)
    args = build_parser().parse_args(["--email", "a@x.com", "--password", "long-enough-pw", "--reset-password"])

    await create_or_update_admin(repo, args)

    assert verify_password("long-enough-pw", repo.rows[admin.id].hashed_password)

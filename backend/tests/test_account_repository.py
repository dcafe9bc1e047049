"""
AccountRepository against a real async session (SQLite in memory).
"""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dealership.core.database import Base
from dealership.core.exceptions import AccountNotFoundError, DuplicateEmailError
from dealership.models.account import AccountRole
from dealership.repositories.account import AccountRepository


@pytest_asyncio.fixture
async def session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as s:
        yield s
    await engine.dispose()


@pytest.fixture
def sql_repo(session):
    return AccountRepository(session)


async def _create(repo, email, role=AccountRole.CUSTOMER, **fields):
    return await repo.create(
        email=email, name=fields.pop("name", "Mario"), surname=fields.pop("surname", "Rossi"),
        role=role, **fields,
    )


@pytest.mark.asyncio
async def test_create_stores_lowercased_email_and_lookup_ignores_case(sql_repo):
    account = await _create(sql_repo, " Anna@X.com ")

    assert account.email == "anna@x.com"
    found = await sql_repo.find_by_email("ANNA@X.COM")
    assert found is not None and found.id == account.id
    assert await sql_repo.find_by_email("other@x.com") is None


@pytest.mark.asyncio
async def test_duplicate_create_in_any_case_is_signalled(sql_repo):
    await _create(sql_repo, "a@x.com")

    with pytest.raises(DuplicateEmailError):
        await _create(sql_repo, "A@X.COM")

    # The savepoint rolled back alone; the session is still usable
    assert len(await sql_repo.find_all()) == 1


@pytest.mark.asyncio
async def test_duplicate_update_keeps_the_row_readable(sql_repo):
    await _create(sql_repo, "taken@x.com")
    mine = await _create(sql_repo, "mine@x.com")

    with pytest.raises(DuplicateEmailError):
        await sql_repo.update(mine.id, email="TAKEN@x.com")

    reloaded = await sql_repo.find_by_id(mine.id)
    assert reloaded.email == "mine@x.com"


@pytest.mark.asyncio
async def test_update_missing_row(sql_repo):
    with pytest.raises(AccountNotFoundError):
        await sql_repo.update(uuid.uuid4(), name="Nobody")


@pytest.mark.asyncio
async def test_role_listing_drops_soft_deleted_accounts(sql_repo):
    seller = await _create(sql_repo, "s@x.com", AccountRole.SELLER)
    assert [a.id for a in await sql_repo.find_by_role(AccountRole.SELLER)] == [seller.id]

    await sql_repo.soft_delete(seller.id)

    assert await sql_repo.find_by_role(AccountRole.SELLER) == []
    assert [a.id for a in await sql_repo.find_by_active(False)] == [seller.id]


@pytest.mark.asyncio
async def test_count_active_admins(sql_repo):
    root = await _create(sql_repo, "root@x.com", AccountRole.SYSTEM_ADMIN)
    admin = await _create(sql_repo, "admin@x.com", AccountRole.ADMIN)
    await _create(sql_repo, "s@x.com", AccountRole.SELLER)

    assert await sql_repo.count_active_admins(lock=True) == 2

    await sql_repo.update(admin.id, active=False)

    assert await sql_repo.count_active_admins(lock=True) == 1
    assert await sql_repo.count_active_admins() == 1
    assert (await sql_repo.find_by_id(root.id)).active is True


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(sql_repo):
    underscore = await _create(sql_repo, "a_b@x.com")
    await _create(sql_repo, "axb@x.com")
    percent = await _create(sql_repo, "pct@x.com", surname="100%")

    assert [a.id for a in await sql_repo.search("a_b")] == [underscore.id]
    assert [a.id for a in await sql_repo.search("%")] == [percent.id]


@pytest.mark.asyncio
async def test_hard_delete(sql_repo):
    account = await _create(sql_repo, "gone@x.com")

    await sql_repo.hard_delete(account.id)

    with pytest.raises(AccountNotFoundError):
        await sql_repo.hard_delete(account.id)

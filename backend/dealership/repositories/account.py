"""
Account persistence.

``AccountStore`` is the contract the services depend on; ``AccountRepository``
implements it over an async SQLAlchemy session. Emails are stored lowercased
and a unique violation surfaces as ``DuplicateEmailError`` so callers can tell
it apart from "not found" and from driver failures.
"""

import uuid
from typing import Any, Protocol, Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.exceptions import AccountNotFoundError, DuplicateEmailError
from dealership.core.logging import get_logger
from dealership.models.account import ADMIN_ROLES, Account, AccountRole

logger = get_logger("repositories.account")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _escape_like(text: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class AccountStore(Protocol):
    """Persistence operations the account services rely on."""

    async def find_by_id(self, account_id: uuid.UUID) -> Account | None: ...

    async def find_by_email(self, email: str) -> Account | None: ...

    async def find_all(self) -> Sequence[Account]: ...

    async def find_by_role(self, role: AccountRole) -> Sequence[Account]: ...

    async def find_by_active(self, active: bool) -> Sequence[Account]: ...

    async def find_by_verified(self, verified: bool) -> Sequence[Account]: ...

    async def search(self, query: str) -> Sequence[Account]: ...

    async def count_active_admins(self, lock: bool = False) -> int: ...

    async def create(self, **fields: Any) -> Account: ...

    async def update(self, account_id: uuid.UUID, **fields: Any) -> Account: ...

    async def soft_delete(self, account_id: uuid.UUID) -> None: ...

    async def hard_delete(self, account_id: uuid.UUID) -> None: ...


class AccountRepository:
    """SQLAlchemy implementation of ``AccountStore``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Reads ────────────────────────────────────────────────────────────────
    async def find_by_id(self, account_id: uuid.UUID) -> Account | None:
        return await self.db.get(Account, account_id)

    async def find_by_email(self, email: str) -> Account | None:
        result = await self.db.execute(
            select(Account).where(func.lower(Account.email) == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def find_all(self) -> Sequence[Account]:
        result = await self.db.execute(select(Account).order_by(Account.created_at.desc()))
        return result.scalars().all()

    async def find_by_role(self, role: AccountRole) -> Sequence[Account]:
        """Active accounts holding ``role``."""
        result = await self.db.execute(
            select(Account)
            .where(Account.role == role, Account.active.is_(True))
            .order_by(Account.created_at.desc())
        )
        return result.scalars().all()

    async def find_by_active(self, active: bool) -> Sequence[Account]:
        result = await self.db.execute(
            select(Account)
            .where(Account.active.is_(active))
            .order_by(Account.created_at.desc())
        )
        return result.scalars().all()

    async def find_by_verified(self, verified: bool) -> Sequence[Account]:
        result = await self.db.execute(
            select(Account)
            .where(Account.verified.is_(verified))
            .order_by(Account.created_at.desc())
        )
        return result.scalars().all()

    async def search(self, query: str) -> Sequence[Account]:
        """Case-insensitive partial match on name, surname and email, newest first."""
        pattern = f"%{_escape_like(query.strip())}%"
        result = await self.db.execute(
            select(Account)
            .where(
                or_(
                    Account.name.ilike(pattern, escape="\\"),
                    Account.surname.ilike(pattern, escape="\\"),
                    Account.email.ilike(pattern, escape="\\"),
                )
            )
            .order_by(Account.created_at.desc())
        )
        return result.scalars().all()

    async def count_active_admins(self, lock: bool = False) -> int:
        """
        Count active ADMIN and SYSTEM_ADMIN accounts.

        With ``lock=True`` the counted rows stay locked until the surrounding
        transaction ends, so a concurrent deactivation waits for this one.
        PostgreSQL refuses FOR UPDATE on aggregates, hence the row select.
        """
        stmt = select(Account.id).where(
            Account.role.in_(ADMIN_ROLES),
            Account.active.is_(True),
        )
        if lock:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return len(result.scalars().all())

    # ── Writes ───────────────────────────────────────────────────────────────
    async def create(self, **fields: Any) -> Account:
        fields["email"] = normalize_email(fields["email"])
        account = Account(**fields)
        try:
            async with self.db.begin_nested():
                self.db.add(account)
                await self.db.flush()
        except IntegrityError as exc:
            logger.info("Duplicate email on create: %s", fields["email"])
            raise DuplicateEmailError(fields["email"]) from exc
        await self.db.refresh(account)
        return account

    async def update(self, account_id: uuid.UUID, **fields: Any) -> Account:
        account = await self.find_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if "email" in fields and fields["email"] is not None:
            fields["email"] = normalize_email(fields["email"])
        try:
            async with self.db.begin_nested():
                for key, value in fields.items():
                    setattr(account, key, value)
                await self.db.flush()
        except IntegrityError as exc:
            logger.info("Duplicate email on update of account %s", account_id)
            raise DuplicateEmailError(fields.get("email", "")) from exc
        await self.db.refresh(account)
        return account

    async def soft_delete(self, account_id: uuid.UUID) -> None:
        await self.update(account_id, active=False)

    async def hard_delete(self, account_id: uuid.UUID) -> None:
        result = await self.db.execute(delete(Account).where(Account.id == account_id))
        if result.rowcount == 0:
            raise AccountNotFoundError(account_id)

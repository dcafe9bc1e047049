"""
Account model with role-based access control.
Roles are compared by exact membership, never by rank.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from dealership.core.database import Base


class AccountRole(str, enum.Enum):
    """Account roles for RBAC."""
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"
    SYSTEM_ADMIN = "system_admin"
    OTHER = "other"


# Roles counted by the last-admin-standing rule
ADMIN_ROLES: frozenset[AccountRole] = frozenset({AccountRole.ADMIN, AccountRole.SYSTEM_ADMIN})


class Account(Base):
    """Account record: identity and authorization unit."""

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    # Null for accounts that cannot log in with a password
    hashed_password: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    surname: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    phone_number: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
    )
    fiscal_code: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
    )
    role: Mapped[AccountRole] = mapped_column(
        Enum(AccountRole, name="accountrole"),
        default=AccountRole.CUSTOMER,
        nullable=False,
        index=True,
    )
    active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    profile_picture: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def __repr__(self) -> str:
        return f"<Account {self.email} ({self.role.value})>"

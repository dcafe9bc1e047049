"""
Admin provisioning utility.

Creates or updates a SYSTEM_ADMIN or ADMIN account with an Argon2 hash.

Usage examples:
  python -m dealership.create_admin --email admin@auto2g.it --name Mario --surname Rossi
  python -m dealership.create_admin --email staff@auto2g.it --role admin --promote-existing --reset-password
"""

import argparse
import asyncio
import getpass
from typing import NoReturn

from dealership.core.config import get_settings
from dealership.core.database import transaction
from dealership.core.logging import get_logger, setup_logging
from dealership.core.security import hash_password
from dealership.models.account import ADMIN_ROLES, AccountRole
from dealership.repositories.account import AccountRepository, AccountStore, normalize_email

logger = get_logger("create_admin")


def _resolve_password(cli_password: str | None) -> str:
    if cli_password:
        password = cli_password.strip()
    else:
        first = getpass.getpass("Admin password: ").strip()
        second = getpass.getpass("Confirm password: ").strip()
        if first != second:
            raise ValueError("Passwords do not match.")
        password = first

    min_length = get_settings().PASSWORD_MIN_LENGTH
    if len(password) < min_length:
        raise ValueError(f"Password must be at least {min_length} characters.")
    return password


def _fail(message: str) -> NoReturn:
    raise SystemExit(f"Error: {message}")


async def create_or_update_admin(repo: AccountStore, args: argparse.Namespace) -> str:
    """Apply the CLI request to the store. Returns "created" or "updated"."""
    email = normalize_email(args.email)
    role = AccountRole(args.role)
    if role not in ADMIN_ROLES:
        raise ValueError("Role must be admin or system_admin.")
    password = _resolve_password(args.password)

    existing = await repo.find_by_email(email)
    if existing is None:
        await repo.create(
            email=email,
            name=(args.name or "").strip() or "SYSTEM",
            surname=(args.surname or "").strip() or "ADMIN",
            phone_number=args.phone.strip() if args.phone else None,
            hashed_password=hash_password(password),
            role=role,
            active=True,
            verified=True,
        )
        logger.info("Created %s account: %s", role.value, email)
        return "created"

    if existing.role not in ADMIN_ROLES and not args.promote_existing:
        raise ValueError(
            "Account exists with a non-admin role. Re-run with --promote-existing "
            "to explicitly promote it."
        )

    fields: dict = {"role": role, "active": True, "verified": True}
    if args.name:
        fields["name"] = args.name.strip()
    if args.surname:
        fields["surname"] = args.surname.strip()
    if args.phone is not None:
        fields["phone_number"] = args.phone.strip() or None
    if args.reset_password:
        fields["hashed_password"] = hash_password(password)
        logger.info("Reset password for admin account: %s", email)

    await repo.update(existing.id, **fields)
    return "updated"


async def _run(args: argparse.Namespace) -> None:
    async with transaction() as session:
        outcome = await create_or_update_admin(AccountRepository(session), args)
    print(f"Admin account {outcome}: {normalize_email(args.email)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create/update an administrator account (Argon2-hashed password)."
    )
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--name", help="First name")
    parser.add_argument("--surname", help="Last name")
    parser.add_argument("--phone", default=None, help="Phone number")
    parser.add_argument(
        "--role",
        choices=[AccountRole.SYSTEM_ADMIN.value, AccountRole.ADMIN.value],
        default=AccountRole.SYSTEM_ADMIN.value,
    )
    parser.add_argument(
        "--password",
        help="Password (omit to enter securely via prompt)",
    )
    parser.add_argument(
        "--promote-existing",
        action="store_true",
        help="Allow promoting an existing non-admin account",
    )
    parser.add_argument(
        "--reset-password",
        action="store_true",
        help="Reset password for an existing account",
    )
    return parser


def main() -> None:
    setup_logging()
    args = build_parser().parse_args()
    try:
        asyncio.run(_run(args))
    except ValueError as exc:
        _fail(str(exc))


if __name__ == "__main__":
    main()

"""
Account lifecycle: registration, profile changes and administration.

Every public method runs inside ``service_boundary``; domain errors are
raised on purpose and everything unexpected becomes ``InternalError``.
The last-admin-standing rule is enforced by counting active ADMIN and
SYSTEM_ADMIN accounts with their rows locked, so the count and the write
that follows belong to the same request transaction.
"""

import uuid
from datetime import datetime, timezone
from typing import Sequence

from dealership.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    StorageError,
)
from dealership.core.logging import get_logger
from dealership.core.security import generate_temporary_password, hash_password, verify_password
from dealership.core.tokens import TokenService
from dealership.core.validators import IMAGE_EXTENSIONS, validate_image
from dealership.models.account import Account, AccountRole
from dealership.repositories.account import AccountStore, normalize_email
from dealership.schemas.account import (
    AccountCreate,
    AccountCreateAdmin,
    AccountCreateSeller,
    ProfileUpdate,
)
from dealership.services.boundary import service_boundary
from dealership.services.notifications import NotificationPolicy, Notifier, notify
from dealership.services.storage_service import StorageService

logger = get_logger("accounts")

PROFILE_PICTURE_DIR = "profile-pictures"

# Profile columns that may be cleared with an explicit null
_NULLABLE_PROFILE_FIELDS = frozenset({"phone_number", "fiscal_code"})


class AccountService:
    def __init__(
        self,
        repo: AccountStore,
        notifier: Notifier,
        storage: StorageService,
        tokens: TokenService,
    ):
        self.repo = repo
        self.notifier = notifier
        self.storage = storage
        self.tokens = tokens

    # ── Helpers ──────────────────────────────────────────────────────────────
    async def _get_or_404(self, account_id: uuid.UUID) -> Account:
        account = await self.repo.find_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Account {account_id} not found", code="ACCOUNT_NOT_FOUND")
        return account

    async def _ensure_email_free(self, email: str) -> None:
        if await self.repo.find_by_email(email) is not None:
            raise ConflictError("Email already in use", code="EMAIL_IN_USE")

    async def _ensure_not_last_admin(self, target: Account, error_cls: type) -> None:
        """Refuse to take away the last active ADMIN/SYSTEM_ADMIN."""
        if not (target.is_admin and target.active):
            return
        remaining = await self.repo.count_active_admins(lock=True)
        if remaining <= 1:
            logger.warning(
                "Blocked deactivation of account %s: it is the last active administrator",
                target.id,
            )
            raise error_cls(
                "Cannot deactivate the last active administrator",
                code="LAST_ADMIN",
            )

    # ── Registration ─────────────────────────────────────────────────────────
    async def register(self, data: AccountCreate) -> Account:
        """Self-registration as CUSTOMER. The verification email is best-effort."""
        email = normalize_email(data.email)
        async with service_boundary("register", email=email):
            await self._ensure_email_free(email)
            account = await self.repo.create(
                email=email,
                name=data.name,
                surname=data.surname,
                phone_number=data.phone_number,
                hashed_password=hash_password(data.password),
                role=AccountRole.CUSTOMER,
                verified=False,
                active=True,
            )
            token = self.tokens.issue_confirmation(account)
            await notify(
                self.notifier.send_verification_email(account.email, token),
                policy=NotificationPolicy.BEST_EFFORT,
                operation="register",
                account_id=account.id,
            )
            logger.info("CUSTOMER account created: %s", account.id)
            return account

    async def register_admin(self, data: AccountCreateAdmin) -> Account:
        """
        Create an ADMIN with a generated password.

        The setup email carries the only copy of that password, so a failed
        delivery fails the whole operation and the new row is rolled back with
        the request transaction.
        """
        email = normalize_email(data.email)
        async with service_boundary("register_admin", email=email):
            await self._ensure_email_free(email)
            plaintext, hashed = generate_temporary_password()
            account = await self.repo.create(
                email=email,
                name=data.name,
                surname=data.surname,
                phone_number=data.phone_number,
                hashed_password=hashed,
                role=AccountRole.ADMIN,
                verified=False,
                active=True,
            )
            token = self.tokens.issue_confirmation(account)
            await notify(
                self.notifier.send_admin_account_setup(account.email, plaintext, token),
                policy=NotificationPolicy.FATAL,
                operation="register_admin",
                account_id=account.id,
            )
            logger.info("ADMIN account created: %s", account.id)
            return account

    async def register_seller(self, data: AccountCreateSeller) -> Account:
        """Create a SELLER with a generated password; the setup email is required."""
        email = normalize_email(data.email)
        async with service_boundary("register_seller", email=email):
            await self._ensure_email_free(email)
            plaintext, hashed = generate_temporary_password()
            account = await self.repo.create(
                email=email,
                name=data.name,
                surname=data.surname,
                phone_number=data.phone_number,
                hashed_password=hashed,
                role=AccountRole.SELLER,
                verified=False,
                active=True,
            )
            token = self.tokens.issue_confirmation(account)
            await notify(
                self.notifier.send_seller_account_setup(account.email, account.name, plaintext, token),
                policy=NotificationPolicy.FATAL,
                operation="register_seller",
                account_id=account.id,
            )
            logger.info("SELLER account created: %s", account.id)
            return account

    # ── Reads ────────────────────────────────────────────────────────────────
    async def get_account_info(self, account_id: uuid.UUID) -> Account:
        async with service_boundary("get_account_info", account_id=account_id):
            return await self._get_or_404(account_id)

    async def list_all(self) -> Sequence[Account]:
        async with service_boundary("list_all"):
            return await self.repo.find_all()

    async def list_by_role(self, role: AccountRole) -> Sequence[Account]:
        """Active accounts with ``role``; inactive ones are left out."""
        async with service_boundary("list_by_role", role=role):
            return await self.repo.find_by_role(role)

    async def list_by_active(self, active: bool) -> Sequence[Account]:
        async with service_boundary("list_by_active", active=active):
            return await self.repo.find_by_active(active)

    async def list_by_verified(self, verified: bool) -> Sequence[Account]:
        async with service_boundary("list_by_verified", verified=verified):
            return await self.repo.find_by_verified(verified)

    async def search(self, query: str | None) -> Sequence[Account]:
        if not query or not query.strip():
            raise BadRequestError("Search query must not be empty", code="EMPTY_QUERY")
        async with service_boundary("search", query=query):
            return await self.repo.search(query.strip())

    # ── Profile ──────────────────────────────────────────────────────────────
    async def update_profile(self, account_id: uuid.UUID, data: ProfileUpdate) -> Account:
        """Partial update; only the fields present in the request change."""
        fields = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_PROFILE_FIELDS
        }
        async with service_boundary("update_profile", account_id=account_id):
            account = await self._get_or_404(account_id)
            if not fields:
                return account
            updated = await self.repo.update(account.id, **fields)
            logger.info("Profile of account %s updated (%s)", account_id, ", ".join(sorted(fields)))
            return updated

    async def update_email(self, account_id: uuid.UUID, new_email: str) -> Account:
        email = normalize_email(new_email)
        async with service_boundary("update_email", account_id=account_id):
            account = await self._get_or_404(account_id)
            if account.email == email:
                return account
            updated = await self.repo.update(account.id, email=email)
            await notify(
                self.notifier.send_email_changed_confirmation(updated.email, updated.role),
                policy=NotificationPolicy.BEST_EFFORT,
                operation="update_email",
                account_id=updated.id,
            )
            logger.info("Email of account %s changed", account_id)
            return updated

    async def update_password(
        self, account_id: uuid.UUID, current_password: str, new_password: str
    ) -> Account:
        async with service_boundary("update_password", account_id=account_id):
            account = await self._get_or_404(account_id)
            if not account.hashed_password:
                raise BadRequestError(
                    "This account has no password set", code="NO_PASSWORD"
                )
            if not verify_password(current_password, account.hashed_password):
                raise BadRequestError(
                    "Current password is incorrect", code="WRONG_PASSWORD"
                )
            updated = await self.repo.update(
                account.id, hashed_password=hash_password(new_password)
            )
            await notify(
                self.notifier.send_password_changed_confirmation(updated.email, updated.role),
                policy=NotificationPolicy.BEST_EFFORT,
                operation="update_password",
                account_id=updated.id,
            )
            logger.info("Password of account %s changed", account_id)
            return updated

    # ── Deactivation ─────────────────────────────────────────────────────────
    async def deactivate_self(self, account: Account) -> None:
        if account.role == AccountRole.SYSTEM_ADMIN:
            raise ForbiddenError(
                "The system administrator cannot deactivate their own account",
                code="SYSTEM_ADMIN_SELF_DEACTIVATION",
            )
        async with service_boundary("deactivate_self", account_id=account.id):
            current = await self._get_or_404(account.id)
            await self._ensure_not_last_admin(current, ForbiddenError)
            await self.repo.soft_delete(current.id)
            logger.info("Account %s deactivated by its owner", account.id)

    async def admin_set_active(self, target_id: uuid.UUID, active: bool) -> None:
        async with service_boundary("admin_set_active", target_id=target_id, active=active):
            target = await self._get_or_404(target_id)
            if not active:
                await self._ensure_not_last_admin(target, BadRequestError)
            await self.repo.update(target.id, active=active)
            logger.info("Account %s set active=%s", target_id, active)

    async def admin_delete_account(self, target_id: uuid.UUID, actor: Account) -> None:
        """
        Logical delete (active=false) subject to the acting role:

        - SYSTEM_ADMIN may delete anyone but itself.
        - ADMIN may not delete itself nor any ADMIN/SYSTEM_ADMIN.
        - Any other role may only delete its own account.
        """
        async with service_boundary("admin_delete_account", target_id=target_id, actor_id=actor.id):
            target = await self._get_or_404(target_id)
            is_self = target.id == actor.id

            if actor.role == AccountRole.SYSTEM_ADMIN:
                if is_self:
                    raise ForbiddenError(
                        "The system administrator cannot delete their own account",
                        code="SELF_DELETE",
                    )
            elif actor.role == AccountRole.ADMIN:
                if is_self:
                    raise ForbiddenError(
                        "Administrators cannot delete their own account",
                        code="SELF_DELETE",
                    )
                if target.is_admin:
                    raise ForbiddenError(
                        "Administrators cannot delete other administrators",
                        code="ADMIN_TARGET",
                    )
            elif not is_self:
                raise ForbiddenError(
                    "You are not allowed to delete this account", code="NOT_OWNER"
                )

            await self._ensure_not_last_admin(target, ForbiddenError)
            await self.repo.soft_delete(target.id)
            logger.info(
                "Account %s deactivated by %s (%s)", target_id, actor.id, actor.role.value
            )

    async def hard_delete_account(self, target_id: uuid.UUID) -> None:
        """Purge the row. Skips the last-admin rule; the stored picture goes too."""
        async with service_boundary("hard_delete_account", target_id=target_id):
            target = await self._get_or_404(target_id)
            picture = target.profile_picture
            await self.repo.hard_delete(target.id)
            logger.warning("Account %s physically deleted", target_id)
            if picture:
                try:
                    await self.storage.delete(picture)
                except StorageError as exc:
                    logger.error(
                        "Orphaned profile picture %s of deleted account %s: %s",
                        picture, target_id, exc,
                    )

    # ── Profile picture ──────────────────────────────────────────────────────
    async def upload_profile_picture(self, account_id: uuid.UUID, data: bytes) -> Account:
        """
        Store a new picture and point the account at it.

        Storage and database cannot commit together: when the database write
        fails the freshly stored object is deleted again. The previous picture
        is removed only after the new one is persisted.
        """
        mime, ext = validate_image(data)
        async with service_boundary("upload_profile_picture", account_id=account_id):
            account = await self._get_or_404(account_id)
            previous = account.profile_picture
            stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
            key = await self.storage.upload(
                data,
                [PROFILE_PICTURE_DIR],
                f"account-{account.email}-{stamp}.{ext}",
                mime,
            )

            try:
                updated = await self.repo.update(account.id, profile_picture=key)
            except Exception as exc:
                logger.error(
                    "Saving profile picture %s for account %s failed, removing upload",
                    key, account_id, exc_info=exc,
                )
                try:
                    await self.storage.delete(key)
                except StorageError as cleanup_exc:
                    logger.error("Could not remove orphaned upload %s: %s", key, cleanup_exc)
                raise InternalError("Could not save the profile picture") from exc

            if previous and previous != key:
                try:
                    await self.storage.delete(previous)
                except StorageError as exc:
                    logger.warning("Could not remove old profile picture %s: %s", previous, exc)

            logger.info("Profile picture of account %s updated", account_id)
            return updated

    async def get_profile_picture_url(self, account_id: uuid.UUID) -> str | None:
        async with service_boundary("get_profile_picture_url", account_id=account_id):
            account = await self._get_or_404(account_id)
            if not account.profile_picture:
                return None
            return await self.storage.presigned_url(account.profile_picture)

    async def get_profile_picture(self, account_id: uuid.UUID) -> tuple[bytes, str, str]:
        """Returns (bytes, content type, file name)."""
        async with service_boundary("get_profile_picture", account_id=account_id):
            account = await self._get_or_404(account_id)
            if not account.profile_picture:
                raise NotFoundError("Profile picture not found", code="PICTURE_NOT_FOUND")
            data = await self.storage.download(account.profile_picture)
            filename = account.profile_picture.rsplit("/", 1)[-1]
            return data, _content_type_for(filename), filename


def _content_type_for(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    for mime, known_ext in IMAGE_EXTENSIONS.items():
        if ext == known_ext or (ext == "jpeg" and known_ext == "jpg"):
            return mime
    return "application/octet-stream"

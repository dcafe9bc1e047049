"""
FastAPI dependencies: collaborators, services and the authorization guard.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.config import Settings, get_settings
from dealership.core.database import get_db
from dealership.core.exceptions import ForbiddenError, UnauthorizedError
from dealership.core.logging import get_logger
from dealership.core.permissions import is_allowed
from dealership.core.tokens import TokenService, get_token_service
from dealership.models.account import Account
from dealership.repositories.account import AccountRepository, AccountStore
from dealership.services.account_service import AccountService
from dealership.services.auth_service import AuthService
from dealership.services.email_service import get_email_notifier
from dealership.services.notifications import Notifier
from dealership.services.storage_service import StorageService, get_storage

logger = get_logger("deps")

# Bearer token scheme; the session cookie is the fallback
bearer_scheme = HTTPBearer(auto_error=False)


# ── Collaborators ────────────────────────────────────────────────────────────
async def get_account_repository(db: AsyncSession = Depends(get_db)) -> AccountStore:
    return AccountRepository(db)


def get_notifier() -> Notifier:
    return get_email_notifier()


def get_storage_service() -> StorageService:
    return get_storage()


def get_tokens() -> TokenService:
    return get_token_service()


# ── Services ─────────────────────────────────────────────────────────────────
def get_account_service(
    repo: AccountStore = Depends(get_account_repository),
    notifier: Notifier = Depends(get_notifier),
    storage: StorageService = Depends(get_storage_service),
    tokens: TokenService = Depends(get_tokens),
) -> AccountService:
    return AccountService(repo, notifier, storage, tokens)


def get_auth_service(
    repo: AccountStore = Depends(get_account_repository),
    notifier: Notifier = Depends(get_notifier),
    tokens: TokenService = Depends(get_tokens),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(repo, notifier, tokens, settings)


# ── Authentication ───────────────────────────────────────────────────────────
async def get_current_account(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> Account:
    """
    Resolve the caller from the bearer header or the session cookie.
    Raises 401 when the token is missing, invalid or belongs to a disabled account.
    """
    if credentials is not None:
        token = credentials.credentials
    else:
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise UnauthorizedError()
    return await auth.authenticate_session(token)


# ── Authorization ────────────────────────────────────────────────────────────
def authorize(operation: str):
    """
    Guard for one operation of the OPERATION_ROLES table.

        account: Account = Depends(authorize("accounts:list"))
    """
    async def guard(account: Account = Depends(get_current_account)) -> Account:
        if not is_allowed(operation, account.role):
            logger.warning(
                "Account %s with role %s denied %s", account.id, account.role.value, operation
            )
            raise ForbiddenError(
                f"Role '{account.role.value}' is not allowed to perform this operation",
                code="ROLE_NOT_ALLOWED",
                details={"role": account.role.value, "operation": operation},
            )
        return account

    guard.__name__ = f"authorize_{operation.replace(':', '_')}"
    return guard

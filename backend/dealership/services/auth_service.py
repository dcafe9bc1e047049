"""
Authentication flows: login, email verification, password reset and
session resolution for the authorization guard.
"""

from datetime import datetime, timezone

from dealership.core.config import Settings
from dealership.core.exceptions import NotFoundError, UnauthorizedError
from dealership.core.logging import get_logger
from dealership.core.security import hash_password, verify_password
from dealership.core.tokens import (
    ConfirmationClaims,
    OnboardingSimpleClaims,
    PasswordResetClaims,
    SessionClaims,
    TokenService,
)
from dealership.models.account import Account, AccountRole
from dealership.repositories.account import AccountStore, normalize_email
from dealership.schemas.account import LoginResult, LoginUser, VerifyResult
from dealership.services.boundary import service_boundary
from dealership.services.notifications import NotificationPolicy, Notifier, notify

logger = get_logger("auth")

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    def __init__(
        self,
        repo: AccountStore,
        notifier: Notifier,
        tokens: TokenService,
        settings: Settings,
    ):
        self.repo = repo
        self.notifier = notifier
        self.tokens = tokens
        self.settings = settings

    # ── Login ────────────────────────────────────────────────────────────────
    async def login(self, email: str, password: str) -> LoginResult:
        """
        Exchange credentials for a session token.

        Checks run in a fixed order: unknown email, unverified, disabled,
        no password, wrong password. Unknown email and wrong password share
        one message so the endpoint does not reveal which emails exist.
        """
        email = normalize_email(email)
        async with service_boundary("login", email=email):
            account = await self.repo.find_by_email(email)
            if account is None:
                logger.warning("Login failed for %s: no such account", email)
                raise UnauthorizedError(INVALID_CREDENTIALS, code="INVALID_CREDENTIALS")
            if not account.verified:
                logger.warning("Login failed for %s: not verified", email)
                raise UnauthorizedError(
                    "Account not verified. Check your email.", code="NOT_VERIFIED"
                )
            if not account.active:
                logger.warning("Login failed for %s: account disabled", email)
                raise UnauthorizedError("Account disabled.", code="ACCOUNT_DISABLED")
            if not account.hashed_password:
                logger.warning("Login failed for %s: no password login", email)
                raise UnauthorizedError(
                    "This account does not allow password login.", code="NO_PASSWORD_LOGIN"
                )
            if not verify_password(password, account.hashed_password):
                logger.warning("Login failed for %s: wrong password", email)
                raise UnauthorizedError(INVALID_CREDENTIALS, code="INVALID_CREDENTIALS")

            account = await self.repo.update(account.id, last_login=datetime.now(timezone.utc))
            token = self.tokens.issue_session(account)
            logger.info("Account %s logged in", account.id)
            return LoginResult(token=token, user=LoginUser.model_validate(account))

    # ── Email verification ───────────────────────────────────────────────────
    async def verify_email(self, token: str) -> VerifyResult:
        """
        Confirm an email address and open a session.

        Verifying an already verified account succeeds again and returns a
        fresh session.
        """
        claims = self.tokens.verify(token, ConfirmationClaims)
        async with service_boundary("verify_email", account_id=claims.id):
            account = await self.repo.find_by_id(claims.id)
            if account is None:
                raise NotFoundError("Account not found", code="ACCOUNT_NOT_FOUND")
            if not account.verified:
                account = await self.repo.update(account.id, verified=True)
                logger.info("Account %s verified", account.id)
            else:
                logger.info("Account %s was already verified", account.id)
            return VerifyResult(token=self.tokens.issue_session(account), email=account.email)

    def verify_onboarding(self, token: str) -> OnboardingSimpleClaims:
        """Decode an onboarding link (email + company name)."""
        return self.tokens.verify(token, OnboardingSimpleClaims)

    # ── Password reset ───────────────────────────────────────────────────────
    def reset_url_for(self, role: AccountRole, token: str) -> str:
        if role == AccountRole.CUSTOMER:
            base = self.settings.CUSTOMER_FRONTEND_URL
        else:
            base = self.settings.FRONTEND_URL
        return f"{base.rstrip('/')}/reset/confirm?token={token}"

    async def request_password_reset(self, email: str) -> None:
        """Send a reset link if the account exists. Never tells the caller which."""
        email = normalize_email(email)
        async with service_boundary("request_password_reset", email=email):
            account = await self.repo.find_by_email(email)
            if account is None:
                logger.info("Password reset requested for unknown email %s", email)
                return
            token = self.tokens.issue_password_reset(account)
            await notify(
                self.notifier.send_recover_password(
                    account.email, self.reset_url_for(account.role, token)
                ),
                policy=NotificationPolicy.BEST_EFFORT,
                operation="request_password_reset",
                account_id=account.id,
            )
            logger.info("Password reset link issued for account %s", account.id)

    async def reset_password(self, token: str, new_password: str) -> None:
        claims = self.tokens.verify(token, PasswordResetClaims)
        async with service_boundary("reset_password", account_id=claims.id):
            account = await self.repo.find_by_id(claims.id)
            if account is None:
                raise NotFoundError("Account not found", code="ACCOUNT_NOT_FOUND")
            account = await self.repo.update(
                account.id, hashed_password=hash_password(new_password)
            )
            await notify(
                self.notifier.send_password_changed_confirmation(account.email, account.role),
                policy=NotificationPolicy.BEST_EFFORT,
                operation="reset_password",
                account_id=account.id,
            )
            logger.info("Password of account %s reset", account.id)

    # ── Sessions ─────────────────────────────────────────────────────────────
    async def authenticate_session(self, token: str) -> Account:
        """
        Resolve a session token to its live account.

        A token minted before the account was disabled is still refused: the
        account is looked up on every request.
        """
        claims = self.tokens.verify(token, SessionClaims)
        if not claims.active:
            raise UnauthorizedError("Inactive account", code="ACCOUNT_DISABLED")
        async with service_boundary("authenticate_session", account_id=claims.id):
            account = await self.repo.find_by_id(claims.id)
        if account is None or not account.active:
            raise UnauthorizedError(code="ACCOUNT_DISABLED")
        return account

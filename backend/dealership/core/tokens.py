"""
Token issuer/verifier: signed, typed, time-limited JWTs.

Every payload carries a ``type`` discriminator. Callers name the claims class
they expect and ``verify`` refuses any other kind, so a confirmation token can
never stand in for a password-reset token even though both are validly signed.
"""

import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, TypeVar, Union

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from dealership.core.config import Settings, get_settings
from dealership.core.exceptions import InvalidTokenError, WrongTokenTypeError
from dealership.core.logging import get_logger
from dealership.models.account import Account, AccountRole

logger = get_logger("tokens")


# ── Claims (tagged union on "type") ──────────────────────────────────────────
class _Claims(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class SessionClaims(_Claims):
    """Long-lived session: identity, role and status snapshot."""
    type: Literal["session"] = "session"
    id: uuid.UUID
    email: str
    role: AccountRole
    verified: bool
    active: bool


class ConfirmationClaims(_Claims):
    """Proves control of an email address during registration."""
    type: Literal["confirmation"] = "confirmation"
    id: uuid.UUID


class PasswordResetClaims(_Claims):
    """Authorizes one password change without the old password."""
    type: Literal["password-reset"] = "password-reset"
    id: uuid.UUID


class OnboardingSimpleClaims(_Claims):
    """Minimal onboarding link payload."""
    type: Literal["onboarding-simple"] = "onboarding-simple"
    email: str
    company_name: str


TokenClaims = Annotated[
    Union[SessionClaims, ConfirmationClaims, PasswordResetClaims, OnboardingSimpleClaims],
    Field(discriminator="type"),
]
_claims_adapter: TypeAdapter = TypeAdapter(TokenClaims)

ClaimsT = TypeVar("ClaimsT", bound=_Claims)


def token_type_of(claims_cls: type[_Claims]) -> str:
    """Return the discriminator value declared by a claims class."""
    return claims_cls.model_fields["type"].default


# ── Service ──────────────────────────────────────────────────────────────────
class TokenService:
    """Issues and verifies typed tokens with a single key pair."""

    def __init__(
        self,
        signing_key: str,
        verify_key: str | None = None,
        algorithm: str = "HS256",
        ttls: dict[str, timedelta] | None = None,
    ):
        if not signing_key:
            raise ValueError("A signing key is required to issue tokens")
        self.algorithm = algorithm
        self._signing_key = signing_key
        # Symmetric algorithms verify with the same secret
        self._verify_key = verify_key or signing_key
        self.ttls: dict[str, timedelta] = {
            "session": timedelta(days=10),
            "confirmation": timedelta(hours=2),
            "password-reset": timedelta(minutes=30),
            "onboarding-simple": timedelta(hours=2),
        }
        if ttls:
            self.ttls.update(ttls)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        """Build the service from configuration (HS256 secret or RS256 key files)."""
        if settings.JWT_ALGORITHM.upper().startswith("RS"):
            signing_key = Path(settings.JWT_PRIVATE_KEY_FILE).read_text()
            verify_key = Path(settings.JWT_PUBLIC_KEY_FILE).read_text()
        else:
            signing_key = settings.JWT_SECRET_KEY
            verify_key = None
        return cls(
            signing_key=signing_key,
            verify_key=verify_key,
            algorithm=settings.JWT_ALGORITHM,
            ttls={
                "session": timedelta(days=settings.SESSION_TOKEN_EXPIRE_DAYS),
                "confirmation": timedelta(minutes=settings.CONFIRMATION_TOKEN_EXPIRE_MINUTES),
                "password-reset": timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
                "onboarding-simple": timedelta(minutes=settings.ONBOARDING_TOKEN_EXPIRE_MINUTES),
            },
        )

    # ── Issue ────────────────────────────────────────────────────────────────
    def issue(self, claims: _Claims, ttl: timedelta | None = None) -> str:
        """Sign the claims with their type and an expiry."""
        now = datetime.now(timezone.utc)
        lifetime = ttl if ttl is not None else self.ttls[claims.type]
        payload = claims.model_dump(mode="json")
        payload.update({"iat": now, "exp": now + lifetime})
        return jwt.encode(payload, self._signing_key, algorithm=self.algorithm)

    def issue_session(self, account: Account) -> str:
        return self.issue(
            SessionClaims(
                id=account.id,
                email=account.email,
                role=account.role,
                verified=account.verified,
                active=account.active,
            )
        )

    def issue_confirmation(self, account: Account) -> str:
        return self.issue(ConfirmationClaims(id=account.id))

    def issue_password_reset(self, account: Account) -> str:
        return self.issue(PasswordResetClaims(id=account.id))

    def issue_onboarding(self, email: str, company_name: str) -> str:
        return self.issue(OnboardingSimpleClaims(email=email, company_name=company_name))

    # ── Verify ───────────────────────────────────────────────────────────────
    def verify(self, token: str, expected: type[ClaimsT]) -> ClaimsT:
        """
        Verify signature, type and expiry, in that order.

        Raises:
            WrongTokenTypeError: the token is genuine but of another kind.
            InvalidTokenError: bad signature, malformed payload or expired.
        """
        if not token or not token.strip():
            raise InvalidTokenError("Token is required")

        try:
            payload = jwt.decode(
                token,
                self._verify_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.info("Token rejected: %s", exc)
            raise InvalidTokenError() from exc

        expected_type = token_type_of(expected)
        actual_type = payload.get("type")
        if actual_type != expected_type:
            logger.warning(
                "Token type mismatch: expected=%s actual=%s", expected_type, actual_type
            )
            raise WrongTokenTypeError(expected_type, actual_type)

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)):
            raise InvalidTokenError("Token has no expiry")
        if datetime.fromtimestamp(exp, tz=timezone.utc) <= datetime.now(timezone.utc):
            raise InvalidTokenError("Token has expired")

        try:
            claims = _claims_adapter.validate_python(payload)
        except PydanticValidationError as exc:
            logger.warning("Malformed %s token payload: %s", expected_type, exc)
            raise InvalidTokenError("Malformed token payload") from exc
        return claims


@lru_cache
def get_token_service() -> TokenService:
    """Application-wide token service."""
    return TokenService.from_settings(get_settings())

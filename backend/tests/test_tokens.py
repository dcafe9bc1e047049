import uuid
from datetime import timedelta
from types import SimpleNamespace

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt

from dealership.core.exceptions import InvalidTokenError, WrongTokenTypeError
from dealership.core.tokens import (
    ConfirmationClaims,
    OnboardingSimpleClaims,
    PasswordResetClaims,
    SessionClaims,
    TokenService,
    token_type_of,
)
from dealership.models.account import AccountRole


def _account(**overrides):
    values = dict(
        id=uuid.uuid4(),
        email="anna@auto2g.test",
        role=AccountRole.SELLER,
        verified=True,
        active=True,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_session_round_trip_carries_status_snapshot(tokens):
    account = _account()
    claims = tokens.verify(tokens.issue_session(account), SessionClaims)

    assert isinstance(claims, SessionClaims)
    assert claims.id == account.id
    assert claims.email == account.email
    assert claims.role is AccountRole.SELLER
    assert claims.verified is True
    assert claims.active is True


def test_every_payload_names_its_type(tokens):
    account = _account()
    issued = {
        "session": tokens.issue_session(account),
        "confirmation": tokens.issue_confirmation(account),
        "password-reset": tokens.issue_password_reset(account),
        "onboarding-simple": tokens.issue_onboarding("a@b.test", "ACME"),
    }
    for expected_type, token in issued.items():
        payload = jwt.get_unverified_claims(token)
        assert payload["type"] == expected_type
        assert payload["exp"] > payload["iat"]


def test_confirmation_token_rejected_where_reset_expected(tokens):
    token = tokens.issue_confirmation(_account())

    with pytest.raises(WrongTokenTypeError) as exc:
        tokens.verify(token, PasswordResetClaims)

    assert exc.value.expected == "password-reset"
    assert exc.value.actual == "confirmation"
    assert exc.value.status_code == 401


def test_reset_token_rejected_where_confirmation_expected(tokens):
    token = tokens.issue_password_reset(_account())
    with pytest.raises(WrongTokenTypeError):
        tokens.verify(token, ConfirmationClaims)


def test_type_is_checked_before_expiry(tokens):
    expired_confirmation = tokens.issue(
        ConfirmationClaims(id=uuid.uuid4()), ttl=timedelta(seconds=-5)
    )
    with pytest.raises(WrongTokenTypeError):
        tokens.verify(expired_confirmation, PasswordResetClaims)


def test_expired_token_is_invalid(tokens):
    expired = tokens.issue(PasswordResetClaims(id=uuid.uuid4()), ttl=timedelta(seconds=-5))

    with pytest.raises(InvalidTokenError) as exc:
        tokens.verify(expired, PasswordResetClaims)

    assert not isinstance(exc.value, WrongTokenTypeError)
    assert "expired" in exc.value.message


def test_tampered_and_foreign_tokens_are_invalid(tokens):
    token = tokens.issue_confirmation(_account())
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(InvalidTokenError):
        tokens.verify(tampered, ConfirmationClaims)

    foreign = TokenService("another-secret").issue_confirmation(_account())
    with pytest.raises(InvalidTokenError):
        tokens.verify(foreign, ConfirmationClaims)

    for garbage in ("", "   ", "not.a.jwt"):
        with pytest.raises(InvalidTokenError):
            tokens.verify(garbage, ConfirmationClaims)


def test_signed_payload_with_bad_fields_is_invalid(tokens):
    forged = jwt.encode(
        {"type": "confirmation", "id": "not-a-uuid", "exp": 4102444800},
        "unit-test-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        tokens.verify(forged, ConfirmationClaims)


def test_onboarding_claims(tokens):
    claims = tokens.verify(tokens.issue_onboarding("info@acme.test", "ACME Srl"), OnboardingSimpleClaims)
    assert claims.email == "info@acme.test"
    assert claims.company_name == "ACME Srl"


def test_default_lifetimes():
    service = TokenService("x")
    assert service.ttls[token_type_of(SessionClaims)] == timedelta(days=10)
    assert service.ttls[token_type_of(ConfirmationClaims)] == timedelta(hours=2)
    assert service.ttls[token_type_of(PasswordResetClaims)] == timedelta(minutes=30)
    assert service.ttls[token_type_of(OnboardingSimpleClaims)] == timedelta(hours=2)


def test_rs256_verify_only_key():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()

    issuer = TokenService(private_pem, public_pem, algorithm="RS256")
    token = issuer.issue_session(_account())

    resource_server = TokenService(public_pem, public_pem, algorithm="RS256")
    claims = resource_server.verify(token, SessionClaims)
    assert claims.email == "anna@auto2g.test"

    with pytest.raises(InvalidTokenError):
        TokenService("shared-secret").verify(token, SessionClaims)


def test_missing_signing_key_is_a_configuration_error():
    with pytest.raises(ValueError):
        TokenService("")

"""
Credential store: password hashing (Argon2) and temporary credentials.
"""

import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from dealership.core.config import get_settings

settings = get_settings()

# ── Password Hashing (Argon2) ───────────────────────────────────────────────
ph = PasswordHasher(
    time_cost=settings.PASSWORD_HASH_TIME_COST,
    memory_cost=settings.PASSWORD_HASH_MEMORY_COST,
    parallelism=settings.PASSWORD_HASH_PARALLELISM,
)


def hash_password(password: str) -> str:
    """Hash a password using Argon2."""
    return ph.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verify a password against a hash.
    Returns False for a mismatch and for an empty or malformed hash.
    """
    if not hashed_password:
        return False
    try:
        return ph.verify(hashed_password, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


# ── Temporary credentials ───────────────────────────────────────────────────
def generate_temporary_password(length: int | None = None) -> tuple[str, str]:
    """
    Generate a random password for accounts created on someone's behalf.

    Returns (plaintext, hash). Only the hash is ever persisted; the plaintext
    goes out once in the setup email.
    """
    size = length or settings.TEMP_PASSWORD_LENGTH
    alphabet = settings.TEMP_PASSWORD_ALPHABET
    plaintext = "".join(secrets.choice(alphabet) for _ in range(size))
    return plaintext, hash_password(plaintext)

"""
auth/passwords.py -- Salted password hashing and login verification.

Security design decisions:
  bcrypt, used directly (no passlib wrapper). Its cost factor makes every
  guess expensive, which is what low-entropy secrets need.

  Salt and digest are stored as two columns. bcrypt.gensalt() yields
  "$2b$<cost>$" followed by 16 random bytes in bcrypt's base64 alphabet, so
  the stored salt also pins the cost factor that was in force when the
  password was set. The digest is the fixed 31-character tail that
  bcrypt.hashpw() appends to the salt.

  bcrypt reads at most 72 bytes of input, so the password is first reduced to
  base64(HMAC-SHA256(key, password)), 44 ASCII bytes with no NULs. Every
  character of the password then reaches bcrypt, however long it is.

  verify() recomputes the digest from the stored salt and compares with
  hmac.compare_digest(), so the comparison time does not depend on where the
  two digests first differ.

  The _dummy pair enables timing equalization in authenticate_user() so the
  response time does not reveal whether an email is registered [C1].

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from typing import TYPE_CHECKING

import bcrypt

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("planit.auth")

# Fixed pre-hash key. It is not a secret: changing it would invalidate every
# stored hash, so it must never follow SECRET_KEY.
_PREHASH_KEY = b"planit-password-prehash-v1"
_DIGEST_LENGTH = 31


def _encode(plain: str) -> bytes:
    mac = hmac.new(_PREHASH_KEY, plain.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(mac)


class PasswordHasher:
    """Derive and verify (salt, digest) pairs with a fixed bcrypt cost.

    Usage:
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        salt, digest = hasher.hash("correct horse")
        hasher.verify("correct horse", salt, digest)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        # Computed once so the first failed login is not measurably slower
        # than later ones.
        self._dummy_salt, self._dummy_digest = self.hash("planit_timing_dummy")

    def hash(self, plain: str) -> tuple[str, str]:
        """Return (salt, digest) for a freshly salted hash of plain."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(_encode(plain), salt)
        return salt.decode("ascii"), hashed[-_DIGEST_LENGTH:].decode("ascii")

    def verify(self, plain: str, salt: str, digest: str) -> bool:
        """Return True if plain hashes to digest under salt."""
        try:
            hashed = bcrypt.hashpw(_encode(plain), salt.encode("ascii"))
        except (ValueError, TypeError, UnicodeEncodeError):
            # Corrupt salt in storage. Treat as a mismatch, never as a crash.
            logger.warning("Stored password salt could not be parsed")
            return False
        return hmac.compare_digest(hashed[-_DIGEST_LENGTH:], digest.encode("ascii"))

    def burn(self, plain: str) -> None:
        """Spend one verification's worth of work against the dummy hash."""
        self.verify(plain, self._dummy_salt, self._dummy_digest)


def authenticate_user(store: UserStore, hasher: PasswordHasher, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization [C1].

    Always runs bcrypt whether or not the account exists:
    - Unknown email: bcrypt runs against the dummy hash (same cost)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure. Callers must report
    both failure modes with the same message.
    """
    user = store.get_by_email(email)
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt [C1]
        hasher.burn(password)
        return None
    if not hasher.verify(password, user.password_salt, user.password_hash):
        return None
    return user

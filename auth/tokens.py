"""
auth/tokens.py -- Self-contained signed session tokens.

Wire format: the standard compact JWT layout, so any bearer-token tooling can
read it:

    base64url(header JSON) . base64url(claims JSON) . base64url(HMAC-SHA256)

All three segments use unpadded URL-safe base64. The signature covers
"<header>.<payload>" and is keyed with SECRET_KEY. Encoding and signing go
through python-jose, which compares signatures with hmac.compare_digest.

Security design decisions:
  Fixed strategy. The codec signs and verifies with HS256 only. The algorithm
  named in an incoming header is never used to pick a verifier: jose is given
  an allow-list of exactly one algorithm, so "none", HS512 or RS256 headers
  are rejected before any signature work happens.

  Stateless. Nothing is stored server-side. A token lives until its embedded
  "exp" passes; rotating SECRET_KEY invalidates every outstanding token.

  No oracle. verify() returns None for every failure (wrong segment count,
  bad signature, undecodable payload, missing or passed expiry). The route
  layer turns all of them into the same 401 message.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from jose import JWTError, jwt

logger = logging.getLogger("planit.auth")

_ALGORITHM = "HS256"

# Expiry is checked by the codec itself (now >= exp rejects, missing exp
# rejects) against the injected clock. jose's own check would use the wall
# clock and its leeway rules, and its require_exp option re-enables that check.
_DECODE_OPTIONS = {"verify_exp": False}


class TokenCodec:
    """Issue and verify session tokens for one secret and one lifetime.

    Args:
        secret_key:       HMAC key. Comes from Settings.secret_key.
        lifetime_seconds: Added to the issue time to form the "exp" claim.
        clock:            Returns the current UNIX time. Injected by tests.
    """

    def __init__(
        self,
        secret_key: str,
        lifetime_seconds: int = 30 * 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenCodec requires a non-empty secret key.")
        self._secret_key = secret_key
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock

    def issue(self, claims: dict[str, Any]) -> str:
        """Return a signed token carrying claims plus an absolute "exp"."""
        payload = dict(claims)
        payload["exp"] = int(self._clock()) + self.lifetime_seconds
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> dict[str, Any] | None:
        """Return the claims of a valid, unexpired token, or None."""
        if not isinstance(token, str) or len(token.split(".")) != 3:
            return None
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM], options=_DECODE_OPTIONS)
        except JWTError:
            return None
        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return None
        if self._clock() >= exp:
            logger.debug("Rejected expired session token")
            return None
        return claims

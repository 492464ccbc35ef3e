"""
auth/dependencies.py -- Bearer-token authentication and its FastAPI Depends() helper.

authenticate() is the pure resolver: Authorization header value in, User out,
or one of the AuthenticationError subclasses. It never refreshes or extends a
token and has no side effects.

get_current_user() wires it to the request: it pulls the header, the
TokenCodec and the UserStore off app.state and lets the error propagate to
the handler in api/main.py, which renders the 401 envelope.

Failure messages:
  - no header / wrong scheme      -> "Authentication required."
  - any token problem             -> "Invalid or expired session."
  - token fine, account missing   -> AccountNotFoundError (distinct code)

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenCodec
from core.errors import AccountNotFoundError, AuthenticationError

_SCHEME_PREFIX = "Bearer "

INVALID_SESSION_MESSAGE = "Invalid or expired session."


def authenticate(authorization: str | None, codec: TokenCodec, user_store: UserStore) -> User:
    """Resolve an Authorization header value to the User it was issued for."""
    if not authorization or not authorization.startswith(_SCHEME_PREFIX):
        raise AuthenticationError("Authentication required.")

    claims = codec.verify(authorization[len(_SCHEME_PREFIX) :])
    if claims is None:
        raise AuthenticationError(INVALID_SESSION_MESSAGE)

    user_id = claims.get("user_id")
    if not isinstance(user_id, str) or not user_id:
        raise AuthenticationError(INVALID_SESSION_MESSAGE)

    user = user_store.get_by_id(user_id)
    if user is None:
        raise AccountNotFoundError("Account not found.")
    return user


def get_current_user(request: Request) -> User:
    """Require authentication. Raises AuthenticationError (HTTP 401) on failure.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    return authenticate(
        request.headers.get("Authorization"),
        request.app.state.token_codec,
        request.app.state.user_store,
    )

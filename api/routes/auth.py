"""
api/routes/auth.py -- Registration, login and current-user endpoints.

Routes:
  POST /api/auth/register   -- create account; returns {token, user} (201)
  POST /api/auth/login      -- password login; returns {token, user}
  GET  /api/auth/me         -- current user (requires auth)

Security:
  [C1] authenticate_user() provides timing equalization -- use it, never inline.
  Email uniqueness is case-insensitive; the UNIQUE column catches races.
  [M5] Cache-Control: no-store on every response that carries a token.
  Unknown email and wrong password produce the same 401 body.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError

from api.models import AuthResponse, LoginRequest, MeResponse, RegisterRequest, UserResponse
from auth.dependencies import get_current_user
from auth.models import User
from auth.passwords import PasswordHasher, authenticate_user
from auth.store import UserStore
from auth.tokens import TokenCodec
from core.errors import BadCredentialsError, ConflictError

logger = logging.getLogger("planit.auth")

# Auth policy:
# - POST /api/auth/register: public
# - POST /api/auth/login:    public
# - GET  /api/auth/me:       requires auth (get_current_user)
router = APIRouter()

_EMAIL_TAKEN_MESSAGE = "An account with this email already exists."


def _issue_for(request: Request, user: User) -> str:
    codec: TokenCodec = request.app.state.token_codec
    return codec.issue({"user_id": user.id, "email": user.email})


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, response: Response, body: RegisterRequest) -> AuthResponse:
    """Create an account and sign the caller in.

    The pre-check gives the common duplicate case a clean error without
    running bcrypt; the IntegrityError branch covers two concurrent requests
    for the same address.
    """
    user_store: UserStore = request.app.state.user_store
    hasher: PasswordHasher = request.app.state.hasher

    if user_store.get_by_email(body.email) is not None:
        raise ConflictError(_EMAIL_TAKEN_MESSAGE)

    salt, digest = hasher.hash(body.password)
    new_user = User(email=body.email, name=body.name or None, password_salt=salt, password_hash=digest)
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise ConflictError(_EMAIL_TAKEN_MESSAGE) from exc

    user = user_store.get_by_id(user_id)
    if user is None:
        raise RuntimeError("User not found after write.")
    logger.info("Registered user id=%s", user.id)

    response.headers["Cache-Control"] = "no-store"  # [M5]
    return AuthResponse(token=_issue_for(request, user), user=UserResponse.from_user(user))


@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, response: Response, body: LoginRequest) -> AuthResponse:
    """Authenticate with email and password.

    Uses authenticate_user() which includes timing equalization [C1]. Do NOT
    inline get_by_email() + verify() -- that re-introduces the timing attack.
    """
    user_store: UserStore = request.app.state.user_store
    hasher: PasswordHasher = request.app.state.hasher

    user = authenticate_user(user_store, hasher, body.email, body.password)
    if user is None:
        logger.info("Rejected login attempt")
        raise BadCredentialsError("Invalid email or password.")

    response.headers["Cache-Control"] = "no-store"  # [M5]
    return AuthResponse(token=_issue_for(request, user), user=UserResponse.from_user(user))


@router.get("/auth/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return the account the bearer token belongs to."""
    return MeResponse(user=UserResponse.from_user(current_user))

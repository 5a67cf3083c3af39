"""
api/routes/auth.py -- Registration, login, current-user and logout endpoints.

Routes (relative to Settings.api_prefix):
  POST /register  -- create an account; 201
  POST /login     -- password login; returns a new bearer token, revokes older ones
  GET  /user      -- current user {id, name, email} (requires auth)
  POST /logout    -- revoke the presented bearer token (requires auth)

Auth policy:
  /register and /login are public. /user and /logout declare
  Depends(get_current_user); the resolved User arrives as a parameter.

Handlers are plain `def`: bcrypt and the SQLAlchemy store are blocking, so
Starlette runs them in its thread pool instead of on the event loop.

Errors are raised, not returned. auth.errors.ValidationError -> 422 and
auth.errors.AuthenticationError -> 401 are mapped in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    UserPublic,
)
from auth import service
from auth.dependencies import get_bearer_token, get_current_user, get_user_store
from auth.errors import AuthenticationError
from auth.models import User
from auth.store import UserStore

router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(body: RegisterRequest, store: UserStore = Depends(get_user_store)) -> RegisterResponse:
    """Create an account. The response never includes the password or its hash."""
    user = service.register_user(store, body.name, body.email, body.password)
    return RegisterResponse(user=UserPublic.from_user(user))


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, store: UserStore = Depends(get_user_store)) -> JSONResponse:
    """Exchange email + password for a bearer token.

    Any token issued earlier for the same user stops working (single session).
    Wrong email and wrong password produce the same 401 "Invalid credentials".
    """
    token, user = service.login(store, body.email, body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(access_token=token, user=UserPublic.from_user(user)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/user", response_model=UserPublic)
def current_user(user: User = Depends(get_current_user)) -> UserPublic:
    """Return the identity the validation gate resolved. No further lookup."""
    return UserPublic.from_user(user)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
) -> MessageResponse:
    """Revoke the bearer token on this request.

    The gate has already accepted the token; it is read again here because the
    delete needs the token itself, not the user.
    """
    token = get_bearer_token(request)
    if token is None:
        raise AuthenticationError("Token not provided")
    service.logout(store, token)
    return MessageResponse(message="Logged out successfully")

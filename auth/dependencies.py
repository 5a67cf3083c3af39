"""
auth/dependencies.py -- FastAPI Depends() helpers for the validation gate.

get_current_user() is the gate: every protected route declares
    user: User = Depends(get_current_user)
and receives the resolved identity as a parameter. Nothing is written to a
global or mutated onto the request, so concurrent requests stay isolated.

Failures raise AuthenticationError; api/main.py maps it to 401.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import AuthenticationError
from auth.models import User
from auth.service import resolve_token
from auth.store import UserStore
from auth.tokens import parse_bearer_token


def get_user_store(request: Request) -> UserStore:
    """Return the application's UserStore (created in the lifespan)."""
    return request.app.state.user_store


def get_bearer_token(request: Request) -> str | None:
    """Return the bearer credential from the Authorization header, or None."""
    return parse_bearer_token(request.headers.get("Authorization"))


def get_current_user(request: Request) -> User:
    """Require a valid bearer token and return its owner.

    Raises:
        AuthenticationError("Token missing"): header absent or not "Bearer <token>".
        AuthenticationError("Invalid token"): no stored token matches.
    """
    token = get_bearer_token(request)
    if token is None:
        raise AuthenticationError("Token missing")
    return resolve_token(get_user_store(request), token)

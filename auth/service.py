"""
auth/service.py -- Registration, login, token resolution and logout.

These are plain functions over a UserStore, so the API routes and the CLI
share one code path. They raise auth.errors exceptions; callers decide how
to surface them (HTTP status codes live in api/, exit codes in main.py).

Field-shape validation (required fields, email syntax, length bounds) happens
earlier in api.models.RegisterRequest / LoginRequest. What stays here is the
validation that needs the database: email uniqueness.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import AuthenticationError, ValidationError
from auth.models import User
from auth.store import UserStore
from auth.tokens import burn_password_check, generate_session_token, hash_password, verify_password

logger = logging.getLogger("tokengate.auth")

DUPLICATE_EMAIL = "The email has already been taken."
INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Invalid token"


def register_user(store: UserStore, name: str, email: str, password: str) -> User:
    """Create a user and return it (id assigned, hash included for internal use only).

    Raises ValidationError if the email is already registered. The pre-check
    gives the common case a clean error; the IntegrityError branch covers two
    registrations racing past the pre-check.
    """
    if store.email_exists(email):
        raise ValidationError({"email": [DUPLICATE_EMAIL]})

    user = User(name=name, email=email, hashed_password=hash_password(password))
    try:
        user.id = store.create_user(user)
    except IntegrityError as exc:
        raise ValidationError({"email": [DUPLICATE_EMAIL]}) from exc

    logger.info("User registered (user_id=%s)", user.id)
    return user


def login(store: UserStore, email: str, password: str) -> tuple[str, User]:
    """Check credentials and issue a fresh token, revoking every earlier one.

    bcrypt always runs, against a dummy hash when the email is unknown, so an
    attacker cannot tell "no such account" from "wrong password" by timing.
    Both cases raise the same AuthenticationError.
    """
    user = store.get_by_email(email)
    if user is None:
        burn_password_check(password)
        logger.warning("Login failed: invalid credentials")
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not verify_password(password, user.hashed_password):
        logger.warning("Login failed: invalid credentials (user_id=%s)", user.id)
        raise AuthenticationError(INVALID_CREDENTIALS)

    token = generate_session_token()
    revoked = store.replace_tokens(user.id, token)
    logger.info("Login succeeded (user_id=%s, revoked_tokens=%d)", user.id, revoked)
    return token, user


def resolve_token(store: UserStore, token: str) -> User:
    """Return the owner of token. Pure lookup: no expiry check, no side effects."""
    user = store.get_user_by_token(token)
    if user is None:
        raise AuthenticationError(INVALID_TOKEN)
    return user


def logout(store: UserStore, token: str) -> None:
    """Revoke token.

    Raises AuthenticationError if no row matched, e.g. the token was revoked
    by a concurrent logout or login after the validation gate accepted it.
    """
    if not store.delete_token(token):
        raise AuthenticationError(INVALID_TOKEN)
    logger.info("Token revoked")

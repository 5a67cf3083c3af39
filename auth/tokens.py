"""
auth/tokens.py -- Password hashing, session token generation, bearer parsing.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). Bcrypt is the right
       choice for low-entropy secrets because its cost factor makes brute-force
       expensive. _DUMMY_HASH lets the login path run bcrypt even when the
       email is unknown, so response time does not reveal whether an account
       exists.

  Session tokens: secrets.token_hex(32) gives 256 bits of entropy from the OS
       CSPRNG, encoded as 64 lowercase hex characters. Tokens are opaque: no
       structure, no signature, nothing to decode. Validity is "a row exists".

  Bearer parsing: RFC 6750 "Authorization: Bearer <token>". The scheme is
       case-insensitive; the credential is a single non-empty word.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import secrets

import bcrypt

from core.config import get_settings

TOKEN_BYTES = 32

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt only reads the first 72 bytes, and recent bcrypt releases raise
    instead of truncating. The input is cut to 72 bytes here so hashing and
    verification agree across versions.
    """
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw compares in constant time. A malformed stored hash is
    treated as a mismatch.
    """
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except ValueError:
        return False


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:72]


# Computed once at module load so the first unknown-email login is not
# measurably slower than later ones.
_DUMMY_HASH: str = hash_password("tokengate_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run one bcrypt comparison against the dummy hash and discard the result."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def generate_session_token() -> str:
    """Return a new opaque bearer token: 32 random bytes as 64 hex characters."""
    return secrets.token_hex(TOKEN_BYTES)


def parse_bearer_token(header: str | None) -> str | None:
    """Extract the credential from an Authorization header value.

    Returns None when the header is absent, uses another scheme, or carries
    an empty or multi-word credential. Never raises.

        >>> parse_bearer_token("Bearer abc123")
        'abc123'
        >>> parse_bearer_token("Basic dXNlcjpwdw==") is None
        True
    """
    if not header:
        return None
    scheme, _, credential = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    credential = credential.strip()
    if not credential or any(ch.isspace() for ch in credential):
        return None
    return credential

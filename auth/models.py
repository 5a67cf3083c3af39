"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store and the service do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered identity.

    email is the login identifier and is stored lowercased. hashed_password is
    the bcrypt digest and must never leave the server -- api/ maps User to a
    public response model that omits it.
    """

    name: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None


@dataclass
class SessionToken:
    """A bearer credential bound to exactly one user.

    Tokens are never mutated: login replaces them, logout deletes them.
    created_at is the issue time. It is recorded for auditing only and is not
    used to expire the token.
    """

    user_id: int
    token: str
    id: int | None = None
    created_at: str | None = None

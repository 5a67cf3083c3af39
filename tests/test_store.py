"""Unit tests for auth/store.py -- UserStore repository methods.

Covers:
- create_user() assigns ids and enforces the UNIQUE email constraint
- get_by_email() / get_by_id() / email_exists() lookups
- replace_tokens() keeps exactly one token per user and reports revocations
- get_user_by_token() resolves owners and misses unknown tokens
- delete_token() reports whether a row was removed
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore


def _user(email: str = "ann@x.com", name: str = "Ann") -> User:
    # Store tests do not need a real bcrypt digest.
    return User(name=name, email=email, hashed_password="not-a-real-hash")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def test_create_user_assigns_id_and_timestamp(store: UserStore) -> None:
    uid = store.create_user(_user())
    assert isinstance(uid, int)

    user = store.get_by_id(uid)
    assert user is not None
    assert user.id == uid
    assert user.name == "Ann"
    assert user.email == "ann@x.com"
    assert user.created_at


def test_create_user_ids_are_unique(store: UserStore) -> None:
    first = store.create_user(_user("a@x.com"))
    second = store.create_user(_user("b@x.com"))
    assert first != second


def test_duplicate_email_raises_integrity_error(store: UserStore) -> None:
    store.create_user(_user())
    with pytest.raises(IntegrityError):
        store.create_user(_user(name="Other Ann"))
    assert store.count_users() == 1


def test_get_by_email_and_exists(store: UserStore) -> None:
    uid = store.create_user(_user())
    found = store.get_by_email("ann@x.com")
    assert found is not None and found.id == uid
    assert store.email_exists("ann@x.com")
    assert store.get_by_email("bob@x.com") is None
    assert not store.email_exists("bob@x.com")


def test_get_by_id_unknown_returns_none(store: UserStore) -> None:
    assert store.get_by_id(999) is None


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def test_replace_tokens_on_first_login_revokes_nothing(store: UserStore) -> None:
    uid = store.create_user(_user())
    assert store.replace_tokens(uid, "t1") == 0
    tokens = store.list_tokens(uid)
    assert [t.token for t in tokens] == ["t1"]
    assert tokens[0].user_id == uid
    assert tokens[0].created_at


def test_replace_tokens_keeps_single_session(store: UserStore) -> None:
    uid = store.create_user(_user())
    store.replace_tokens(uid, "t1")
    assert store.replace_tokens(uid, "t2") == 1

    assert [t.token for t in store.list_tokens(uid)] == ["t2"]
    assert store.get_user_by_token("t1") is None
    assert store.get_user_by_token("t2").id == uid


def test_replace_tokens_does_not_touch_other_users(store: UserStore) -> None:
    ann = store.create_user(_user("ann@x.com"))
    bob = store.create_user(_user("bob@x.com", name="Bob"))
    store.replace_tokens(ann, "ann-token")
    store.replace_tokens(bob, "bob-token")

    assert store.get_user_by_token("ann-token").id == ann
    assert store.get_user_by_token("bob-token").id == bob


def test_replace_tokens_rolls_back_on_duplicate_token(store: UserStore) -> None:
    """A failed insert must not leave the user with zero tokens."""
    ann = store.create_user(_user("ann@x.com"))
    bob = store.create_user(_user("bob@x.com", name="Bob"))
    store.replace_tokens(ann, "ann-token")
    store.replace_tokens(bob, "bob-token")

    with pytest.raises(IntegrityError):
        store.replace_tokens(ann, "bob-token")

    assert [t.token for t in store.list_tokens(ann)] == ["ann-token"]


def test_get_user_by_token_unknown(store: UserStore) -> None:
    assert store.get_user_by_token("nope") is None


def test_delete_token(store: UserStore) -> None:
    uid = store.create_user(_user())
    store.replace_tokens(uid, "t1")

    assert store.delete_token("t1") is True
    assert store.get_user_by_token("t1") is None
    assert store.list_tokens(uid) == []
    # Second delete finds nothing.
    assert store.delete_token("t1") is False


def test_ping(store: UserStore) -> None:
    assert store.ping() is True

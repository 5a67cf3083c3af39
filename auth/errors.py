"""
auth/errors.py -- Domain exceptions raised by the auth layer.

The service and the validation gate raise these; api/main.py turns them into
HTTP responses (422 and 401). Nothing below api/ knows about status codes.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every error the auth layer raises on purpose."""


class ValidationError(AuthError):
    """One or more input fields were rejected.

    errors maps a field name to its list of messages, e.g.
    {"email": ["The email has already been taken."]}.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        super().__init__("The given data was invalid.")


class AuthenticationError(AuthError):
    """Credentials or bearer token were missing or did not match.

    The message is returned to the client as-is, so it must stay generic:
    never say which half of a credential pair was wrong.
    """

    def __init__(self, message: str = "Unauthenticated") -> None:
        self.message = message
        super().__init__(message)

#!/usr/bin/env python3
"""
TokenGate -- Bearer-token authentication service.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py init-db
  python main.py create-user --name Ann --email ann@example.com --password secret1

Environment variables (see core/config.py for the full list):
  DATABASE_URL   SQLAlchemy URL. Defaults to sqlite:///tokengate.db in the repo root.
  API_PREFIX     Mount point for the auth routes ("" or e.g. "/api").
  DEBUG          true enables DEBUG logging.
"""

from __future__ import annotations

import argparse
import sys

from pydantic import ValidationError as RequestValidationError

from api.models import RegisterRequest
from auth.errors import ValidationError
from auth.service import register_user
from auth.store import UserStore
from core.config import get_settings


def _print_errors(errors: dict[str, list[str]]) -> None:
    for field, messages in errors.items():
        for message in messages:
            print(f"  [!] {field}: {message}")


def _request_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    """Map Pydantic errors on RegisterRequest to {field: [message]}."""
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err.get("loc") else "input"
        ctx_error = err.get("ctx", {}).get("error")
        message = str(ctx_error) if ctx_error is not None else err.get("msg", "Invalid value.")
        errors.setdefault(field, []).append(message)
    return errors


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    url = args.database_url or get_settings().database_url
    store = UserStore(url)
    try:
        store.ping()
    finally:
        store.close()
    print(f"  Schema ready at {url}")
    return 0


def cmd_create_user(args: argparse.Namespace) -> int:
    """Register a user from the command line, with the same rules as POST /register."""
    try:
        body = RegisterRequest(name=args.name, email=args.email, password=args.password)
    except RequestValidationError as exc:
        _print_errors(_request_errors(exc))
        return 1

    store = UserStore(args.database_url or get_settings().database_url)
    try:
        user = register_user(store, body.name, body.email, body.password)
    except ValidationError as exc:
        _print_errors(exc.errors)
        return 1
    finally:
        store.close()

    print(f"  Created user {user.id}: {user.name} <{user.email}>")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokengate",
        description="Bearer-token authentication service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-user --name Ann --email ann@example.com --password secret1
  DATABASE_URL=postgresql://user:pw@host/db python main.py init-db
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=cmd_serve)

    init_db = sub.add_parser("init-db", help="Create the users and api_tokens tables")
    init_db.add_argument("--database-url", default=None, metavar="URL", help="Override DATABASE_URL")
    init_db.set_defaults(func=cmd_init_db)

    create = sub.add_parser("create-user", help="Register a user account")
    create.add_argument("--name", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--password", required=True)
    create.add_argument("--database-url", default=None, metavar="URL", help="Override DATABASE_URL")
    create.set_defaults(func=cmd_create_user)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

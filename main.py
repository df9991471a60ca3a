#!/usr/bin/env python3
"""
rolegate -- cookie session authentication with a single-role admin gate.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080 --reload
  python main.py create-user alice --email alice@example.com --role ADMIN
  python main.py list-users

Environment variables (see core/config.py):
  SECRET_KEY     Signs session cookies. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL of the user store. Defaults to a local SQLite file.
"""

import argparse
import sys

from sqlalchemy.exc import IntegrityError

from auth.models import Role
from auth.store import UserStore
from core.config import get_settings


def _open_store() -> UserStore:
    settings = get_settings()
    return UserStore(settings.database_url) if settings.database_url else UserStore()


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _cmd_create_user(args: argparse.Namespace) -> int:
    """Insert a user with an explicit role, bypassing the signup bootstrap policy."""
    name = args.name.strip()
    if not name:
        print("  [!] Name must not be empty.")
        return 2
    store = _open_store()
    try:
        user = store.create_user(name, email=args.email or None, role=Role(args.role))
    except IntegrityError:
        print(f"  [!] A user with email '{args.email}' already exists.")
        return 1
    finally:
        store.close()
    print(f"Created user {user.id}: {user.name} <{user.email or '-'}> {user.role.value}")
    return 0


def _cmd_list_users(args: argparse.Namespace) -> int:
    store = _open_store()
    try:
        users = store.list_users()
    finally:
        store.close()
    if not users:
        print("No users.")
        return 0
    for user in users:
        print(f"{user.id:>5}  {user.role.value:<5}  {user.name}  <{user.email or '-'}>")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="rolegate",
        description="Cookie session authentication with a single-role admin gate.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-user alice --email alice@example.com --role ADMIN
  DATABASE_URL=postgresql://user:pw@host/db python main.py list-users
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=_cmd_serve)

    create = sub.add_parser("create-user", help="Create a user with an explicit role")
    create.add_argument("name", help="Display name (not unique)")
    create.add_argument("--email", default=None, help="Email address (unique when given)")
    create.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.USER.value,
        help="Role to assign (default: USER)",
    )
    create.set_defaults(func=_cmd_create_user)

    list_users = sub.add_parser("list-users", help="Print every user in creation order")
    list_users.set_defaults(func=_cmd_list_users)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

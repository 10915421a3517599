"""Command-line interface for the user directory service."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

from app.config import ServiceConfig, load_service_config
from app.database import Database
from app.errors import UserServiceError
from app.models import UserCreationRequest

logger = logging.getLogger("userservice.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User directory service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Create the users table")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8090,
        help="Port for the HTTP API (default: 8090)",
    )

    subparsers.add_parser("list-users", help="Print every stored user")

    create_parser = subparsers.add_parser("create-user", help="Insert a new user")
    create_parser.add_argument("email", help="Unique email address of the user")
    create_parser.add_argument("--name", default="", help="Display name")
    create_parser.add_argument(
        "--email-visibility",
        action="store_true",
        help="Mark the email address as visible",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "list-users", "create-user"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(config: ServiceConfig) -> Database:
    database = Database(config.database_path)
    database.initialize()
    logger.info("Database initialised at %s", config.database_path)
    return database


def _serve(*, config: ServiceConfig, host: str, port: int) -> None:
    from app.application import create_application
    import uvicorn

    logger.info("Starting user directory API on http://%s:%s", host, port)
    app = create_application(config)
    uvicorn.run(app, host=host, port=port, log_level=config.log_level.lower())


def _list_users(database: Database) -> None:
    users = database.list_users()
    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':<15}  {'Name':<24}  {'Email':<32}  Created")
    print("-" * 96)
    for user in users:
        print(f"{user.id:<15}  {user.name:<24}  {user.email:<32}  {user.created}")


def _create_user(database: Database, *, email: str, name: str, email_visibility: bool) -> int:
    request = UserCreationRequest(email=email.strip(), email_visibility=email_visibility, name=name.strip())
    try:
        user = database.create_user(request)
    except UserServiceError as exc:
        print(f"Failed to create user: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user.id}: {user.name or '<no name>'} <{user.email}>")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    config = load_service_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    database = _initialise_database(config)

    if args.command == "serve":
        _serve(config=config, host=args.host, port=args.port)
    elif args.command == "list-users":
        _list_users(database)
    elif args.command == "create-user":
        return _create_user(
            database,
            email=args.email,
            name=args.name,
            email_visibility=args.email_visibility,
        )
    elif args.command == "init-db":
        print("Database initialisation complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

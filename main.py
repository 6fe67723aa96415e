"""Command-line interface for the user directory service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from usercrud.config import ServiceSettings, load_settings, resolve_config_path
from usercrud.database import Database
from usercrud.logging_config import setup_logging
from usercrud.seed import load_initial_users

logger = logging.getLogger("usercrud.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User directory service utilities")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML configuration file (default: USERCRUD_CONFIG or config/usercrud.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the user database")
    subparsers.add_parser("seed", help="Load sample users into an empty database")
    subparsers.add_parser("list-users", help="Print every stored user")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: 8000)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "seed", "list-users"}

    config_args, rest = _split_config_option(args_list)
    if not rest:
        rest = ["serve"]
    elif rest[0] not in known_commands and not any(flag in rest for flag in ("-h", "--help")):
        rest = ["serve", *rest]

    return parser.parse_args([*config_args, *rest])


def _split_config_option(args: Sequence[str]) -> tuple[list[str], list[str]]:
    """Separate a leading ``--config PATH`` from the remaining arguments."""

    items = list(args)
    if len(items) >= 2 and items[0] == "--config":
        return items[:2], items[2:]
    if items and items[0].startswith("--config="):
        return items[:1], items[1:]
    return [], items


def _load_settings(config: str | None) -> ServiceSettings:
    config_path = resolve_config_path(config or os.getenv("USERCRUD_CONFIG"))
    return load_settings(config_path)


def _initialise_database(settings: ServiceSettings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(*, settings: ServiceSettings, database: Database, host: str | None, port: int | None) -> None:
    from usercrud.api import create_app
    from usercrud.service import UserService
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    logger.info("Starting user directory API on http://%s:%s", bind_host, bind_port)

    app = create_app(service=UserService(database), settings=settings)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=settings.log_level.lower())


def _list_users(database: Database) -> None:
    users = database.find_all()
    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>4}  {'Name':<24}  {'Email':<32}  {'Phone':<16}  Created")
    print("-" * 100)
    for user in users:
        created = user.created_at.strftime("%Y-%m-%d %H:%M:%S %Z")
        phone = user.phone or "-"
        print(f"{user.id:>4}  {user.name:<24}  {user.email:<32}  {phone:<16}  {created}")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    try:
        settings = _load_settings(args.config)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}")
        return 2

    setup_logging(settings.log_level, settings.log_file)
    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(settings=settings, database=database, host=args.host, port=args.port)
    elif args.command == "seed":
        inserted = load_initial_users(database)
        if inserted:
            print(f"Loaded {inserted} sample users.")
        else:
            print("Database already contains users; nothing loaded.")
    elif args.command == "list-users":
        _list_users(database)
    elif args.command == "init-db":
        print(f"Database initialisation complete: {Path(settings.database_path)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

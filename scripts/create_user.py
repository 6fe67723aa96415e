import argparse
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from usercrud.database import Database, resolve_database_path
from usercrud.errors import DuplicateEmailError, ValidationError
from usercrud.models import UserInput
from usercrud.service import UserService


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a user directory record")
    parser.add_argument("name", help="Display name for the user")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument("--phone", default=None, help="Optional phone number (max 15 characters)")
    parser.add_argument("--address", default=None, help="Optional postal address (max 500 characters)")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to USERCRUD_DB_PATH or data/usercrud.sqlite3)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    db_env = args.db_path or os.getenv("USERCRUD_DB_PATH")
    db_path = resolve_database_path(db_env)

    database = Database(db_path)
    database.initialize()
    service = UserService(database)

    payload = UserInput(
        name=args.name.strip(),
        email=args.email.strip(),
        phone=args.phone,
        address=args.address,
    )
    try:
        user = service.create(payload)
    except (ValidationError, DuplicateEmailError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.name} <{user.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.database import Database, resolve_database_path
from app.errors import UserServiceError
from app.models import UserCreationRequest


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a user directory entry")
    parser.add_argument("email", help="Unique email address for the user")
    parser.add_argument("--name", default="", help="Display name for the user")
    parser.add_argument(
        "--email-visibility",
        action="store_true",
        help="Mark the email address as visible to other users",
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to USERS_DB_PATH or data/users.sqlite3)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    db_env = args.db_path or os.getenv("USERS_DB_PATH")
    db_path = resolve_database_path(db_env)

    database = Database(db_path)
    database.initialize()

    request = UserCreationRequest(
        email=args.email.strip(),
        email_visibility=args.email_visibility,
        name=args.name.strip(),
    )
    try:
        user = database.create_user(request)
    except UserServiceError as exc:  # duplicates, etc.
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user.id}: {user.name} <{user.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

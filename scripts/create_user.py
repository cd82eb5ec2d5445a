import argparse
import getpass
import sys
from pathlib import Path

import anyio
from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backoffice.auth import AuthService
from backoffice.config import load_settings, resolve_database_path
from backoffice.database import Database
from backoffice.errors import BackofficeError
from backoffice.security import TokenIssuer


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register a backoffice user account")
    parser.add_argument("email", help="Unique email address for the account")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to BACKOFFICE_DB_PATH or data/backoffice.sqlite3)",
    )
    return parser.parse_args()


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if not password:
            print("Password must not be empty.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main() -> int:
    load_dotenv()
    args = parse_args()
    password = prompt_for_password()

    settings = load_settings()
    db_path = resolve_database_path(args.db_path) if args.db_path else settings.database_path

    database = Database(db_path)
    database.initialize()
    auth = AuthService(settings, database, TokenIssuer(settings.jwt_secret))

    try:
        account = anyio.run(auth.signup, args.email.strip(), password)
    except BackofficeError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print(f"Created user #{account.id}: <{account.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

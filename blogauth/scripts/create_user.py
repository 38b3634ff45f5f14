"""
Create an account (e.g. first admin). Run from project root:
  python -m blogauth.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m blogauth.scripts.create_user admin admin@example.com your-secure-pass1 admin
"""
import argparse
import sys

from blogauth.core.config import get_settings
from blogauth.core.database import SessionLocal
from blogauth.core.errors import AccountAlreadyExists, StorageFailure
from blogauth.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from blogauth.models import ROLES
from blogauth.schemas.auth import (
    EMAIL_RE,
    PASSWORD_DIGIT_RE,
    PASSWORD_LETTER_RE,
    USERNAME_RE,
)
from blogauth.services.account_store import SqlAccountStore
from blogauth.services.auth import AuthService, RegistrationInput, persist_change


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a blog account from the command line.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars, letters/digits/_)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars, letter and digit)")
    parser.add_argument("role", nargs="?", default="user", choices=list(ROLES))
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN) or not USERNAME_RE.match(username):
        print("Invalid username.", file=sys.stderr)
        return 1
    email = args.email.strip().lower()
    if not EMAIL_RE.match(email):
        print("Invalid email.", file=sys.stderr)
        return 1
    password = args.password
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    if not (PASSWORD_LETTER_RE.search(password) and PASSWORD_DIGIT_RE.search(password)):
        print("Password must contain at least one letter and one number.", file=sys.stderr)
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        store = SqlAccountStore(db)
        service = AuthService(store, settings)
        try:
            result = service.register(RegistrationInput(username=username, email=email, password=password))
            if args.role != "user":
                persist_change(
                    store,
                    result.account.id,
                    lambda account: setattr(account, "role", args.role),
                    attempts=settings.PERSIST_RETRY_LIMIT,
                    failure_message="Could not set role",
                )
        except (AccountAlreadyExists, StorageFailure) as exc:
            print(f"{exc.message}.", file=sys.stderr)
            return 1
        print(f"Created user '{username}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())

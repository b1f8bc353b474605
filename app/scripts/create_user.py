"""
Create an account with any role (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME [role]
Example:
  python -m app.scripts.create_user admin@example.com 'S3cure!pass' Ada Admin admin
"""
import argparse
import sys

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.errors import MarketError
from app.core.logging import configure_logging
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.schemas.ownership import Role
from app.services.accounts import AccountService
from app.services.identity_store import SqlIdentityStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Pet Market account.")
    parser.add_argument("email", help="Login email")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("first_name")
    parser.add_argument("last_name")
    parser.add_argument("role", nargs="?", default="user", choices=[r.value for r in Role])
    args = parser.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)

    email = args.email.strip()
    if "@" not in email or len(email) > 255:
        print("Invalid email.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    service = AccountService(SqlIdentityStore(SessionLocal))
    try:
        account = service.create_account(
            email, args.password, args.first_name.strip(), args.last_name.strip(), Role(args.role)
        )
    except MarketError as e:
        print(e.message, file=sys.stderr)
        return 1
    print(f"Created user '{account.email}' with role '{account.role.value}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

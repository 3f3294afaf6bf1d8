"""
Create a user (e.g. the first admin). Run from project root:
  python -m storefront.scripts.create_user EMAIL PASSWORD NAME [role]
Example:
  python -m storefront.scripts.create_user admin@example.com your-secure-password "Admin User" admin
"""
import argparse
import sys

from storefront.core.database import SessionLocal
from storefront.core.errors import AppError
from storefront.services import auth as auth_service
from storefront.services.validation import validate_register


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Storefront user.")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument("password", help="Password (at least 6 characters)")
    parser.add_argument("name", help="Display name (2-100 chars)")
    parser.add_argument("role", nargs="?", default="user", choices=["user", "admin"])
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        fields = validate_register(
            {"email": args.email, "password": args.password, "name": args.name, "role": args.role}
        )
        result = auth_service.register(db, **fields)
        print(f"Created user '{result.user.email}' with role '{result.user.role}'.")
        return 0
    except AppError as e:
        details = getattr(e, "errors", [])
        print(e.message, file=sys.stderr)
        for err in details:
            print(f"  {err.field}: {err.message}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())

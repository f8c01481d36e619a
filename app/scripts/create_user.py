"""
Provision a user out-of-band (e.g. the one admin). Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user Admin admin@adikart.com your-secure-password admin

The register endpoint only ever creates role=user; this is the only way to
create an admin, and it refuses to create a second one.
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.exceptions import DuplicateEmailError, StorageError, ValidationError
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, PasswordHasher
from app.models.user import User, UserRole
from app.services.credential_store import SqlCredentialStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a storefront user (admin provisioning).")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=UserRole.USER.value,
        choices=[UserRole.USER.value, UserRole.ADMIN.value],
    )
    args = parser.parse_args(argv)

    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    db = SessionLocal()
    try:
        if args.role == UserRole.ADMIN.value:
            existing_admin = db.query(User).filter(User.role == UserRole.ADMIN.value).first()
            if existing_admin is not None:
                print(f"An admin already exists ({existing_admin.email}).", file=sys.stderr)
                return 1
        store = SqlCredentialStore(db, PasswordHasher(get_settings().BCRYPT_ROUNDS))
        try:
            user = store.create(args.name, args.email, args.password, role=args.role)
        except (ValidationError, DuplicateEmailError, StorageError) as e:
            print(e.message, file=sys.stderr)
            return 1
        logger.info("Created user '%s' with role '%s'.", user.email, user.role)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())

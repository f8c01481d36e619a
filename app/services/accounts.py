"""Account registration and login (identity assertion for the caller's session)."""

import logging

from app.core.exceptions import AuthenticationError, ValidationError
from app.core.security import PASSWORD_MIN_LEN, PasswordHasher, normalize_email
from app.models.user import User, UserRole
from app.schemas.auth import IdentityAssertion
from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def to_identity(user: User) -> IdentityAssertion:
    """Identity fields only; the password hash and token pair are never copied."""
    return IdentityAssertion(id=user.id, name=user.name, email=user.email, role=user.role)


class AccountService:
    def __init__(self, store: CredentialStore, hasher: PasswordHasher) -> None:
        self.store = store
        self.hasher = hasher

    def register(self, name: str, email: str, password: str) -> IdentityAssertion:
        """
        Create a regular user account.

        Admin accounts are provisioned out-of-band (app.scripts.create_user);
        nothing a client sends here can produce role=admin.
        """
        if password and len(password) < PASSWORD_MIN_LEN:
            raise ValidationError(
                f"Password must be at least {PASSWORD_MIN_LEN} characters long."
            )
        user = self.store.create(name, email, password, role=UserRole.USER.value)
        logger.info("User registered", extra={"user_id": user.id})
        return to_identity(user)

    def authenticate(self, email: str, password: str) -> IdentityAssertion:
        """
        Check credentials. Unknown email and wrong password raise the same
        AuthenticationError, and both branches run one bcrypt verify.
        """
        user = self.store.find_by_email(normalize_email(email))
        if user is None:
            self.hasher.dummy_verify(password)
            logger.info("Login failed", extra={"reason": "unknown_email"})
            raise AuthenticationError()
        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login failed", extra={"reason": "password_mismatch", "user_id": user.id})
            raise AuthenticationError()
        return to_identity(user)

"""Credential store: user records and their pending reset-token pair."""

import logging
import re
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateEmailError, StorageError, ValidationError
from app.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PasswordHasher,
    normalize_email,
)
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CredentialStore(Protocol):
    """Persistence operations the account and reset services depend on."""

    def find_by_email(self, email: str) -> User | None: ...

    def find_by_id(self, user_id: int) -> User | None: ...

    def list_users(self) -> list[User]: ...

    def create(
        self, name: str, email: str, password: str, role: str = UserRole.USER.value
    ) -> User: ...

    def update_password(self, user_id: int, new_password: str) -> None: ...

    def set_reset_token(self, user_id: int, token_hash: str, expires_at: datetime) -> None: ...

    def clear_reset_token(self, user_id: int, token_hash: str | None = None) -> bool: ...

    def find_by_reset_token_hash(
        self, token_hash: str, now: datetime | None = None
    ) -> User | None: ...

    def complete_reset(
        self, user_id: int, token_hash: str, new_password: str, now: datetime
    ) -> bool: ...

    def clear_expired_reset_tokens(self, now: datetime) -> int: ...


def validate_new_account(name: str, email: str, password: str) -> tuple[str, str]:
    """
    Check required registration fields; return (name, normalized email).
    Raises ValidationError naming the first problem found.
    """
    clean_name = (name or "").strip()
    clean_email = normalize_email(email)
    if not clean_name or not clean_email or not password:
        raise ValidationError("Registration failed: Missing required fields.")
    if len(clean_name) > NAME_MAX_LEN:
        raise ValidationError("Invalid name length.")
    if len(clean_email) > EMAIL_MAX_LEN or not EMAIL_PATTERN.match(clean_email):
        raise ValidationError("Invalid email address.")
    if len(password) > PASSWORD_MAX_LEN:
        raise ValidationError("Invalid password length.")
    return clean_name, clean_email


class SqlCredentialStore:
    """CredentialStore backed by a SQLAlchemy session."""

    def __init__(self, session: Session, hasher: PasswordHasher) -> None:
        self.session = session
        self.hasher = hasher

    def _update(self, action: str, filters: tuple, values: dict) -> int:
        """Run one UPDATE over the matching rows and commit; return the row count."""
        try:
            count = (
                self.session.query(User)
                .filter(*filters)
                .update(values, synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Credential store %s failed", action)
            raise StorageError() from e
        return count

    def find_by_email(self, email: str) -> User | None:
        try:
            return (
                self.session.query(User)
                .filter(User.email == normalize_email(email))
                .first()
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Credential store lookup by email failed")
            raise StorageError() from e

    def find_by_id(self, user_id: int) -> User | None:
        try:
            return self.session.query(User).filter(User.id == user_id).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Credential store lookup by id failed")
            raise StorageError() from e

    def list_users(self) -> list[User]:
        try:
            return self.session.query(User).order_by(User.id).all()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Credential store list failed")
            raise StorageError() from e

    def create(
        self, name: str, email: str, password: str, role: str = UserRole.USER.value
    ) -> User:
        """Insert a new user; the password is hashed before it reaches the row."""
        clean_name, clean_email = validate_new_account(name, email, password)
        if role not in (UserRole.USER.value, UserRole.ADMIN.value):
            raise ValidationError("Invalid role.")
        if self.find_by_email(clean_email) is not None:
            raise DuplicateEmailError()
        user = User(
            name=clean_name,
            email=clean_email,
            password_hash=self.hasher.hash(password),
            role=role,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email.
            self.session.rollback()
            raise DuplicateEmailError() from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Credential store create failed")
            raise StorageError() from e
        self.session.refresh(user)
        return user

    def update_password(self, user_id: int, new_password: str) -> None:
        new_hash = self.hasher.hash(new_password)
        self._update(
            "update_password",
            (User.id == user_id,),
            {User.password_hash: new_hash},
        )

    def set_reset_token(self, user_id: int, token_hash: str, expires_at: datetime) -> None:
        self._update(
            "set_reset_token",
            (User.id == user_id,),
            {User.reset_token_hash: token_hash, User.reset_token_expires_at: expires_at},
        )

    def clear_reset_token(self, user_id: int, token_hash: str | None = None) -> bool:
        """
        Clear the token pair. With token_hash, only while the row still holds
        that hash, so a newer token issued meanwhile survives.
        """
        filters = (User.id == user_id,)
        if token_hash is not None:
            filters += (User.reset_token_hash == token_hash,)
        cleared = self._update(
            "clear_reset_token",
            filters,
            {User.reset_token_hash: None, User.reset_token_expires_at: None},
        )
        return cleared == 1

    def find_by_reset_token_hash(
        self, token_hash: str, now: datetime | None = None
    ) -> User | None:
        """Return the user holding this token hash, only while it has not expired."""
        now = now or datetime.now(UTC)
        try:
            return (
                self.session.query(User)
                .filter(
                    User.reset_token_hash == token_hash,
                    User.reset_token_expires_at > now,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Credential store lookup by reset token failed")
            raise StorageError() from e

    def complete_reset(
        self, user_id: int, token_hash: str, new_password: str, now: datetime
    ) -> bool:
        """
        Replace the password and clear the token pair in one conditional UPDATE.

        The row only changes if it still holds this token hash and the token has
        not expired, so of two concurrent resets with the same token at most one
        returns True.
        """
        new_hash = self.hasher.hash(new_password)
        updated = self._update(
            "complete_reset",
            (
                User.id == user_id,
                User.reset_token_hash == token_hash,
                User.reset_token_expires_at > now,
            ),
            {
                User.password_hash: new_hash,
                User.reset_token_hash: None,
                User.reset_token_expires_at: None,
            },
        )
        return updated == 1

    def clear_expired_reset_tokens(self, now: datetime) -> int:
        return self._update(
            "clear_expired_reset_tokens",
            (
                User.reset_token_expires_at.is_not(None),
                User.reset_token_expires_at <= now,
            ),
            {User.reset_token_hash: None, User.reset_token_expires_at: None},
        )

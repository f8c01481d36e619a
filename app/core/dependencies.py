"""FastAPI dependency providers for the auth services.

Each collaborator (store, hasher, notifier) is built here and injected, so tests
can swap any of them through app.dependency_overrides.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import PasswordHasher
from app.services.accounts import AccountService
from app.services.credential_store import CredentialStore, SqlCredentialStore
from app.services.notifications import ResetLinkNotifier, build_reset_notifier
from app.services.password_reset import PasswordResetter, ResetTokenIssuer


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)


@lru_cache
def get_reset_notifier() -> ResetLinkNotifier:
    return build_reset_notifier(get_settings())


def get_credential_store(
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> CredentialStore:
    return SqlCredentialStore(db, hasher)


def get_account_service(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> AccountService:
    return AccountService(store, hasher)


def get_reset_token_issuer(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    notifier: Annotated[ResetLinkNotifier, Depends(get_reset_notifier)],
) -> ResetTokenIssuer:
    settings = get_settings()
    return ResetTokenIssuer(
        store,
        notifier,
        reset_url=settings.PASSWORD_RESET_URL,
        expire_minutes=settings.RESET_TOKEN_EXPIRE_MINUTES,
    )


def get_password_resetter(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> PasswordResetter:
    return PasswordResetter(store)

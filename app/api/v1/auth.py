"""Register, login, password reset routes and auth dependencies (get_current_user, require_admin)."""

from typing import Annotated

import jwt
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings
from app.core.dependencies import (
    get_account_service,
    get_credential_store,
    get_password_resetter,
    get_reset_token_issuer,
)
from app.core.exceptions import (
    AuthenticationError,
    DispatchError,
    DuplicateEmailError,
    InvalidOrExpiredTokenError,
    StorageError,
    ValidationError,
    WeakPasswordError,
)
from app.core.security import create_access_token, decode_access_token
from app.models.user import UserRole
from app.schemas.auth import (
    ForgotPasswordRequest,
    IdentityAssertion,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UsersListResponse,
)
from app.services.accounts import AccountService, to_identity
from app.services.credential_store import CredentialStore
from app.services.password_reset import (
    RESET_REQUESTED_MESSAGE,
    PasswordResetter,
    ResetTokenIssuer,
    issue_in_background,
)

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _server_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Request failed due to server error.",
    )


@router.post("/register", response_model=IdentityAssertion, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> IdentityAssertion:
    """Create a regular user account and return its identity."""
    try:
        return accounts.register(body.name, body.email, body.password)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message
        ) from e
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    except StorageError as e:
        raise _server_error() from e


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns the identity and a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    try:
        identity = accounts.authenticate(body.email, body.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message) from e
    except StorageError as e:
        raise _server_error() from e
    token = create_access_token(sub=identity.id, role=identity.role)
    return LoginResponse(user=identity, access_token=token, token_type="bearer")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    issuer: Annotated[ResetTokenIssuer, Depends(get_reset_token_issuer)],
) -> MessageResponse:
    """
    Email a password reset link. The response is the same whether or not the
    address has an account.

    With dispatch errors masked (the default) the lookup and email run as a
    background task, so response time does not depend on the account existing.
    """
    if get_settings().RESET_MASK_DISPATCH_ERRORS:
        background_tasks.add_task(issue_in_background, issuer, body.email)
        return MessageResponse(message=RESET_REQUESTED_MESSAGE)
    try:
        return issuer.issue(body.email)
    except DispatchError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message
        ) from e
    except StorageError as e:
        raise _server_error() from e


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    resetter: Annotated[PasswordResetter, Depends(get_password_resetter)],
) -> MessageResponse:
    """Set a new password using the token from the reset link."""
    try:
        return resetter.reset(body.token, body.new_password)
    except (InvalidOrExpiredTokenError, WeakPasswordError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except StorageError as e:
        raise _server_error() from e


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> IdentityAssertion:
    """Dependency: require valid Bearer JWT and return the current user. Raises 401 if missing or invalid."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        user = store.find_by_id(user_id)
    except StorageError as e:
        raise _server_error() from e
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return to_identity(user)


def require_admin(
    current_user: Annotated[IdentityAssertion, Depends(get_current_user)],
) -> IdentityAssertion:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    if current_user.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


@router.get("/me", response_model=IdentityAssertion)
def read_me(
    current_user: Annotated[IdentityAssertion, Depends(get_current_user)],
) -> IdentityAssertion:
    """Return the identity behind the Bearer token."""
    return current_user


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[IdentityAssertion, Depends(require_admin)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> UsersListResponse:
    """List all users (admin only)."""
    try:
        users = store.list_users()
    except StorageError as e:
        raise _server_error() from e
    return UsersListResponse(users=[to_identity(u) for u in users])

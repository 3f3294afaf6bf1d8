"""Auth routes and auth dependencies (get_current_user, require_role, get_optional_user)."""

from collections.abc import Callable, Iterable
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.core.errors import AppError
from storefront.schemas.auth import (
    AccessTokenOut,
    AuthTokens,
    CurrentUser,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
)
from storefront.schemas.common import Envelope
from storefront.schemas.user import UserOut
from storefront.services import auth as auth_service
from storefront.services.validation import validate_login, validate_register

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: require a valid Bearer access token. Raises 401 if missing or invalid."""
    user = auth_service.resolve_token_user(db, _bearer_token(credentials))
    return CurrentUser.model_validate(user)


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser | None:
    """Dependency: like get_current_user, but any failure just means anonymous."""
    token = _bearer_token(credentials)
    if not token:
        return None
    try:
        return CurrentUser.model_validate(auth_service.resolve_token_user(db, token))
    except AppError:
        return None


def require_role(*roles: str | Iterable[str]) -> Callable[..., CurrentUser]:
    """
    Dependency factory: require an authenticated user whose role is in `roles`.
    require_role("admin") and require_role(["admin", "user"]) are both accepted.
    """

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        auth_service.authorize_role(current_user.role, *roles)
        return current_user

    return dependency


require_admin = require_role("admin")


@router.post("/register", response_model=Envelope[AuthTokens], status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[AuthTokens]:
    """Create an account and return it with an access/refresh token pair."""
    fields = validate_register(body.model_dump())
    result = auth_service.register(db, **fields)
    return Envelope(
        message="User registered successfully",
        data=AuthTokens(
            user=UserOut.model_validate(result.user),
            access_token=result.access_token,
            refresh_token=result.refresh_token,
        ),
    )


@router.post("/login", response_model=Envelope[AuthTokens])
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[AuthTokens]:
    """
    Authenticate with email and password; returns both tokens.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    email, password = validate_login(body.model_dump())
    result = auth_service.login(db, email, password)
    return Envelope(
        message="Login successful",
        data=AuthTokens(
            user=UserOut.model_validate(result.user),
            access_token=result.access_token,
            refresh_token=result.refresh_token,
        ),
    )


@router.post("/refresh", response_model=Envelope[AccessTokenOut])
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[AccessTokenOut]:
    """Exchange the current refresh token for a new access token."""
    access_token = auth_service.refresh_access_token(db, body.refresh_token)
    return Envelope(
        message="Token refreshed successfully",
        data=AccessTokenOut(access_token=access_token),
    )


@router.post("/logout", response_model=Envelope[None])
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[None]:
    """Invalidate the caller's refresh token."""
    auth_service.logout(db, current_user.id)
    return Envelope(message="Logged out successfully")


@router.get("/me", response_model=Envelope[UserOut])
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[UserOut]:
    user = auth_service.load_current_user(db, current_user.id)
    return Envelope(data=UserOut.model_validate(user))

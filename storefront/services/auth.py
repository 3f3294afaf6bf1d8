"""
Credential flows (register, login, refresh, logout) and bearer-token resolution.

Tokens carry only the user id; the role is always re-read from the database so a
demoted user loses privileges on their next request.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.core.errors import ConflictError, ForbiddenError, UnauthorizedError
from storefront.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from storefront.models import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass
class AuthResult:
    user: User
    access_token: str
    refresh_token: str


def _find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def _issue_tokens(db: Session, user: User) -> AuthResult:
    """Issue a token pair; the new refresh token replaces any previous one."""
    access_token = create_access_token(user.id)
    refresh_token = create_refresh_token(user.id)
    user.refresh_token = refresh_token
    db.commit()
    db.refresh(user)
    return AuthResult(user=user, access_token=access_token, refresh_token=refresh_token)


def register(db: Session, email: str, password: str, name: str, role: str | None = None) -> AuthResult:
    if _find_by_email(db, email) is not None:
        raise ConflictError("Email already registered", field="email")
    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        role=role or "user",
    )
    db.add(user)
    db.flush()
    logger.info("Registered user id=%s role=%s", user.id, user.role)
    return _issue_tokens(db, user)


def login(db: Session, email: str, password: str) -> AuthResult:
    """Unknown email and wrong password fail identically."""
    user = _find_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    return _issue_tokens(db, user)


def refresh_access_token(db: Session, refresh_token: str | None) -> str:
    """Exchange the user's current refresh token for a new access token."""
    if not refresh_token:
        raise UnauthorizedError("Refresh token required")
    try:
        payload = decode_refresh_token(refresh_token)
        user_id = int(payload["sub"])
    except (jwt.PyJWTError, KeyError, TypeError, ValueError):
        raise UnauthorizedError("Invalid refresh token")
    user = (
        db.query(User)
        .filter(User.id == user_id, User.refresh_token == refresh_token)
        .first()
    )
    if user is None:
        raise UnauthorizedError("Invalid refresh token")
    return create_access_token(user.id)


def logout(db: Session, user_id: int) -> None:
    """Clear the stored refresh token. Calling it again leaves the same state."""
    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    user.refresh_token = None
    db.commit()


def load_current_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    return user


def resolve_token_user(db: Session, token: str | None) -> User:
    """Verify an access token and load its user; each failure has its own message."""
    if not token:
        raise UnauthorizedError("No token provided")
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.PyJWTError:
        raise UnauthorizedError("Invalid token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token payload")
    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    return user


def _flatten(roles: Iterable) -> set[str]:
    flat: set[str] = set()
    for role in roles:
        if isinstance(role, (list, tuple, set, frozenset)):
            flat |= _flatten(role)
        else:
            flat.add(role)
    return flat


def authorize_role(role: str | None, *allowed_roles: str | Iterable[str]) -> None:
    """
    Check an identity's role against the allowed set (nested lists are flattened).
    role=None means no identity was resolved.
    """
    if role is None:
        raise UnauthorizedError("Authentication required")
    allowed = _flatten(allowed_roles)
    if role not in allowed:
        raise ForbiddenError(f"Access denied. Required role: {' or '.join(sorted(allowed))}")

"""User administration queries. Callers only ever see redacted users (see schemas.user)."""

import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from storefront.core.errors import BadRequestError, NotFoundError
from storefront.core.security import hash_password, verify_password
from storefront.models import User
from storefront.services.pagination import Page, paginate
from storefront.services.validation import Pagination, UserFilters

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "createdAt": User.created_at,
}

# Secrets change only through change_password / the auth flows.
PROTECTED_FIELDS = frozenset({"password", "password_hash", "refreshToken", "refresh_token"})
UPDATABLE_FIELDS = ("email", "name", "role")


def list_users(db: Session, pagination: Pagination, filters: UserFilters) -> Page[User]:
    query = db.query(User)
    if filters.role:
        query = query.filter(User.role == filters.role)
    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    column = SORT_COLUMNS.get(filters.sort_by, User.created_at)
    if filters.sort_order == "ASC":
        query = query.order_by(column.asc(), User.id.asc())
    else:
        query = query.order_by(column.desc(), User.id.desc())
    return paginate(query, pagination)


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User with ID {user_id} not found")
    return user


def update_user(db: Session, user_id: int, changes: dict[str, Any]) -> User:
    """Apply profile changes. Password and refresh-token keys are dropped, never applied."""
    user = get_user(db, user_id)
    for key, value in changes.items():
        if key in PROTECTED_FIELDS or key not in UPDATABLE_FIELDS:
            continue
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> None:
    user = get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("Deleted user id=%s", user_id)


def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> None:
    user = get_user(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise BadRequestError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password changed for user id=%s", user_id)

"""User administration endpoints. Every route needs a token; all but change-password need admin."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.auth import get_current_user, require_admin
from storefront.core.database import get_db
from storefront.schemas.auth import CurrentUser
from storefront.schemas.common import Envelope
from storefront.schemas.user import (
    ChangePasswordRequest,
    UserListData,
    UserOut,
    UserUpdateRequest,
)
from storefront.services import users as user_service
from storefront.services.validation import (
    validate_change_password,
    validate_id,
    validate_pagination,
    validate_user_filters,
    validate_user_update,
)

router = APIRouter()


@router.post("/change-password", response_model=Envelope[None])
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[None]:
    """Change the caller's own password; the current one must be supplied."""
    current, new = validate_change_password(body.model_dump(by_alias=True))
    user_service.change_password(db, current_user.id, current, new)
    return Envelope(message="Password changed successfully")


@router.get("", response_model=Envelope[UserListData])
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    page: str | None = None,
    limit: str | None = None,
    search: str | None = None,
    role: str | None = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    sort_order: Annotated[str | None, Query(alias="sortOrder")] = None,
) -> Envelope[UserListData]:
    """List users (admin only), filtered by exact role and/or a name/email search."""
    pagination = validate_pagination(page, limit)
    filters = validate_user_filters(role=role, search=search, sort_by=sort_by, sort_order=sort_order)
    result = user_service.list_users(db, pagination, filters)
    echoed = {"search": search, "role": role, "sortBy": sort_by, "sortOrder": sort_order}
    return Envelope(
        data=UserListData(
            users=[UserOut.model_validate(u) for u in result.items],
            total_pages=result.total_pages,
            current_page=result.page,
            total_users=result.total,
            filters={k: v for k, v in echoed.items() if v is not None},
        )
    )


@router.get("/{user_id}", response_model=Envelope[UserOut])
def get_user(
    user_id: str,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[UserOut]:
    user = user_service.get_user(db, validate_id(user_id, "User ID"))
    return Envelope(data=UserOut.model_validate(user))


@router.put("/{user_id}", response_model=Envelope[UserOut])
def update_user(
    user_id: str,
    body: UserUpdateRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[UserOut]:
    """Update email, name or role. Password and refresh token are never changed here."""
    uid = validate_id(user_id, "User ID")
    changes = validate_user_update(body.model_dump(exclude_unset=True))
    user = user_service.update_user(db, uid, changes)
    return Envelope(message="User updated successfully", data=UserOut.model_validate(user))


@router.delete("/{user_id}", response_model=Envelope[None])
def delete_user(
    user_id: str,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[None]:
    user_service.delete_user(db, validate_id(user_id, "User ID"))
    return Envelope(message="User deleted successfully")

"""Schemas for user administration. UserOut has no password or refresh-token field."""

from datetime import datetime

from pydantic import BaseModel, Field

from storefront.schemas.common import CamelModel


class UserOut(CamelModel):
    """Redacted user."""

    id: int
    email: str
    name: str
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserUpdateRequest(BaseModel):
    """Admin profile edit. Secret fields are accepted but always dropped."""

    email: str | None = None
    name: str | None = None
    role: str | None = None


class ChangePasswordRequest(CamelModel):
    current_password: str | None = Field(default=None)
    new_password: str | None = Field(default=None)


class UserListData(CamelModel):
    users: list[UserOut]
    total_pages: int
    current_page: int
    total_users: int
    filters: dict[str, str] = Field(default_factory=dict)

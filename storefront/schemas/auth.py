"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from storefront.schemas.common import CamelModel
from storefront.schemas.user import UserOut


class RegisterRequest(BaseModel):
    """Registration body. Shape only; rules live in services.validation."""

    email: str | None = None
    password: str | None = None
    name: str | None = None
    role: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class RefreshRequest(CamelModel):
    refresh_token: str | None = Field(default=None, description="Refresh token from login")


class AuthTokens(CamelModel):
    """User plus a freshly issued token pair."""

    user: UserOut
    access_token: str
    refresh_token: str


class AccessTokenOut(CamelModel):
    access_token: str


class CurrentUser(BaseModel):
    """Authenticated identity passed explicitly to route handlers."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    email: str
    name: str
    role: str

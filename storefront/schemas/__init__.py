"""Pydantic request/response schemas."""

from storefront.schemas.auth import (
    AccessTokenOut,
    AuthTokens,
    CurrentUser,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
)
from storefront.schemas.common import CamelModel, Envelope, ErrorEnvelope, FieldErrorOut
from storefront.schemas.health import HealthData, HealthResponse
from storefront.schemas.product import ProductImageOut, ProductListData, ProductOut
from storefront.schemas.user import (
    ChangePasswordRequest,
    UserListData,
    UserOut,
    UserUpdateRequest,
)

__all__ = [
    "AccessTokenOut",
    "AuthTokens",
    "CamelModel",
    "ChangePasswordRequest",
    "CurrentUser",
    "Envelope",
    "ErrorEnvelope",
    "FieldErrorOut",
    "HealthData",
    "HealthResponse",
    "LoginRequest",
    "ProductImageOut",
    "ProductListData",
    "ProductOut",
    "RefreshRequest",
    "RegisterRequest",
    "UserListData",
    "UserOut",
    "UserUpdateRequest",
]

"""
Request validators.

Pure functions over raw request values (query strings, form fields, JSON bodies).
Each one either returns the parsed, typed values or raises:

- BadRequestError for single-condition checks (pagination, id, search term), or
- ValidationError listing every field violation at once (payloads, filters).
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from storefront.core.errors import BadRequestError, FieldError, ValidationError
from storefront.models.user import ROLES

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

PRODUCT_NAME_MIN_LEN = 2
PRODUCT_NAME_MAX_LEN = 100
DESCRIPTION_MAX_LEN = 1000
CATEGORY_MAX_LEN = 50
# Column limits: Numeric(10, 2) and a 32-bit integer.
PRICE_MAX = Decimal("99999999.99")
STOCK_MAX = 2**31 - 1
SEARCH_MAX_LEN = 100
USER_NAME_MIN_LEN = 2
USER_NAME_MAX_LEN = 100
PASSWORD_MIN_LEN = 6

PRODUCT_SORT_FIELDS = ("name", "price", "stock", "createdAt")
USER_SORT_FIELDS = ("name", "email", "role", "createdAt")
SORT_ORDERS = ("ASC", "DESC")


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class ProductFilters:
    """Parsed product list filters. Empty categories means no category filter."""

    categories: tuple[str, ...] = ()
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    in_stock: bool | None = None
    sort_by: str = "createdAt"
    sort_order: str = "DESC"


@dataclass(frozen=True)
class UserFilters:
    role: str | None = None
    search: str | None = None
    sort_by: str = "createdAt"
    sort_order: str = "DESC"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_int(value: Any) -> int | None:
    """Parse an integer from an int or a string of digits; None when not an integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and INTEGER_PATTERN.match(value.strip()):
        return int(value.strip())
    return None


def _parse_decimal(value: Any) -> Decimal | None:
    """Parse a finite decimal from a number or numeric string; None when not a number."""
    if isinstance(value, bool) or value is None:
        return None
    if not isinstance(value, (int, float, Decimal, str)):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


def validate_pagination(page: Any = None, limit: Any = None) -> Pagination:
    """Page must be >= 1 and limit within [1, 100]; both default when absent."""
    page_num = DEFAULT_PAGE
    limit_num = DEFAULT_LIMIT
    if page is not None:
        parsed = _parse_int(page)
        if parsed is None or parsed < 1:
            raise BadRequestError("Page must be a positive integer")
        page_num = parsed
    if limit is not None:
        parsed = _parse_int(limit)
        if parsed is None or parsed < 1 or parsed > MAX_LIMIT:
            raise BadRequestError(f"Limit must be between 1 and {MAX_LIMIT}")
        limit_num = parsed
    return Pagination(page=page_num, limit=limit_num)


def validate_id(value: Any, label: str = "ID") -> int:
    """Return the id as a positive int or raise BadRequestError."""
    if _is_blank(value):
        raise BadRequestError(f"{label} is required")
    parsed = _parse_int(value)
    if parsed is None or parsed < 1:
        raise BadRequestError(f"{label} must be a valid positive integer")
    return parsed


def validate_product_payload(fields: Mapping[str, Any], partial: bool = False) -> dict[str, Any]:
    """
    Validate product fields and return them cleaned and typed.

    With partial=True only the fields present in the payload are checked (and returned),
    which is how updates behave. Keys: name, description, price, stock, category.
    """
    errors: list[FieldError] = []
    cleaned: dict[str, Any] = {}

    if not partial or "name" in fields:
        name = fields.get("name")
        if _is_blank(name):
            errors.append(FieldError("name", "Product name is required"))
        elif not isinstance(name, str):
            errors.append(FieldError("name", "Product name must be a string"))
        elif not (PRODUCT_NAME_MIN_LEN <= len(name.strip()) <= PRODUCT_NAME_MAX_LEN):
            errors.append(
                FieldError(
                    "name",
                    f"Product name must be between {PRODUCT_NAME_MIN_LEN} and "
                    f"{PRODUCT_NAME_MAX_LEN} characters",
                )
            )
        else:
            cleaned["name"] = name.strip()

    if not partial or "price" in fields:
        price = fields.get("price")
        if _is_blank(price):
            errors.append(FieldError("price", "Price is required"))
        else:
            parsed_price = _parse_decimal(price)
            if parsed_price is None or parsed_price < 0:
                errors.append(FieldError("price", "Price must be a valid positive number"))
            elif parsed_price > PRICE_MAX:
                errors.append(FieldError("price", f"Price cannot exceed {PRICE_MAX}"))
            else:
                try:
                    cleaned["price"] = parsed_price.quantize(Decimal("0.01"))
                except InvalidOperation:
                    errors.append(FieldError("price", "Price must be a valid positive number"))

    if "description" in fields:
        description = fields.get("description")
        if description is not None and not isinstance(description, str):
            errors.append(FieldError("description", "Description must be a string"))
        elif description and len(description) > DESCRIPTION_MAX_LEN:
            errors.append(
                FieldError(
                    "description",
                    f"Description cannot exceed {DESCRIPTION_MAX_LEN} characters",
                )
            )
        else:
            cleaned["description"] = description or None

    if "stock" in fields and not _is_blank(fields.get("stock")):
        stock = _parse_int(fields.get("stock"))
        if stock is None or stock < 0:
            errors.append(FieldError("stock", "Stock must be a valid positive integer"))
        elif stock > STOCK_MAX:
            errors.append(FieldError("stock", f"Stock cannot exceed {STOCK_MAX}"))
        else:
            cleaned["stock"] = stock

    if "category" in fields:
        category = fields.get("category")
        if category is not None and not isinstance(category, str):
            errors.append(FieldError("category", "Category must be a string"))
        elif category and len(category.strip()) > CATEGORY_MAX_LEN:
            errors.append(
                FieldError("category", f"Category cannot exceed {CATEGORY_MAX_LEN} characters")
            )
        else:
            cleaned["category"] = category.strip() if category and category.strip() else None

    if errors:
        raise ValidationError("Validation failed", errors)
    return cleaned


def validate_search(term: Any) -> str:
    """Search term is required, non-blank and at most 100 characters."""
    if not isinstance(term, str) or not term.strip():
        raise BadRequestError("Search term is required")
    if len(term) > SEARCH_MAX_LEN:
        raise BadRequestError(f"Search term cannot exceed {SEARCH_MAX_LEN} characters")
    return term.strip()


def _check_sort(
    errors: list[FieldError],
    sort_by: str | None,
    sort_order: str | None,
    allowed_fields: tuple[str, ...],
) -> tuple[str, str]:
    if sort_by is not None and sort_by not in allowed_fields:
        errors.append(
            FieldError("sortBy", f"Sort field must be one of: {', '.join(allowed_fields)}")
        )
    if sort_order is not None and sort_order.upper() not in SORT_ORDERS:
        errors.append(FieldError("sortOrder", "Sort order must be ASC or DESC"))
    return (sort_by or "createdAt", (sort_order or "DESC").upper())


def validate_product_filters(
    category: str | None = None,
    min_price: str | None = None,
    max_price: str | None = None,
    in_stock: str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
) -> ProductFilters:
    """Validate list filters; every violation is reported together."""
    errors: list[FieldError] = []

    low = high = None
    if min_price is not None:
        low = _parse_decimal(min_price)
        if low is None or low < 0:
            errors.append(FieldError("minPrice", "Minimum price must be a valid positive number"))
            low = None
    if max_price is not None:
        high = _parse_decimal(max_price)
        if high is None or high < 0:
            errors.append(FieldError("maxPrice", "Maximum price must be a valid positive number"))
            high = None
    if low is not None and high is not None and low > high:
        errors.append(
            FieldError("priceRange", "Minimum price cannot be greater than maximum price")
        )

    stock_flag = None
    if in_stock is not None:
        if in_stock.lower() not in ("true", "false"):
            errors.append(FieldError("inStock", "inStock must be true or false"))
        else:
            stock_flag = in_stock.lower() == "true"

    sort_field, order = _check_sort(errors, sort_by, sort_order, PRODUCT_SORT_FIELDS)

    if errors:
        raise ValidationError("Filter validation failed", errors)

    categories: tuple[str, ...] = ()
    if category:
        categories = tuple(c.strip() for c in category.split(",") if c.strip())

    return ProductFilters(
        categories=categories,
        min_price=low,
        max_price=high,
        in_stock=stock_flag,
        sort_by=sort_field,
        sort_order=order,
    )


def validate_user_filters(
    role: str | None = None,
    search: str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
) -> UserFilters:
    errors: list[FieldError] = []
    if role is not None and role not in ROLES:
        errors.append(FieldError("role", "Role must be either admin or user"))
    if search is not None and len(search) > SEARCH_MAX_LEN:
        errors.append(
            FieldError("search", f"Search term cannot exceed {SEARCH_MAX_LEN} characters")
        )
    sort_field, order = _check_sort(errors, sort_by, sort_order, USER_SORT_FIELDS)
    if errors:
        raise ValidationError("Filter validation failed", errors)
    return UserFilters(
        role=role,
        search=search.strip() if search and search.strip() else None,
        sort_by=sort_field,
        sort_order=order,
    )


def _check_email(errors: list[FieldError], email: Any) -> None:
    if _is_blank(email):
        errors.append(FieldError("email", "Email is required"))
    elif not isinstance(email, str) or not EMAIL_PATTERN.match(email.strip()):
        errors.append(FieldError("email", "Invalid email format"))


def _check_user_name(errors: list[FieldError], name: Any) -> None:
    if _is_blank(name):
        errors.append(FieldError("name", "Name is required"))
    elif not isinstance(name, str) or not (
        USER_NAME_MIN_LEN <= len(name.strip()) <= USER_NAME_MAX_LEN
    ):
        errors.append(
            FieldError(
                "name",
                f"Name must be between {USER_NAME_MIN_LEN} and {USER_NAME_MAX_LEN} characters",
            )
        )


def _check_role(errors: list[FieldError], role: Any) -> None:
    if role and role not in ROLES:
        errors.append(FieldError("role", "Role must be either admin or user"))


def validate_register(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return email, password, name and role (defaulting to 'user')."""
    errors: list[FieldError] = []
    email = fields.get("email")
    password = fields.get("password")
    name = fields.get("name")
    role = fields.get("role")

    _check_email(errors, email)
    if _is_blank(password):
        errors.append(FieldError("password", "Password is required"))
    elif not isinstance(password, str) or len(password) < PASSWORD_MIN_LEN:
        errors.append(
            FieldError("password", f"Password must be at least {PASSWORD_MIN_LEN} characters")
        )
    _check_user_name(errors, name)
    _check_role(errors, role)

    if errors:
        raise ValidationError("Validation failed", errors)
    return {
        "email": email.strip(),
        "password": password,
        "name": name.strip(),
        "role": role or "user",
    }


def validate_login(fields: Mapping[str, Any]) -> tuple[str, str]:
    """Presence checks only; format is never hinted at on login."""
    errors: list[FieldError] = []
    email = fields.get("email")
    password = fields.get("password")
    if _is_blank(email):
        errors.append(FieldError("email", "Email is required"))
    if _is_blank(password):
        errors.append(FieldError("password", "Password is required"))
    if errors:
        raise ValidationError("Validation failed", errors)
    return str(email).strip(), str(password)


def validate_user_update(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Validate the profile fields an admin may change; other keys are ignored."""
    errors: list[FieldError] = []
    cleaned: dict[str, Any] = {}
    if "email" in fields:
        _check_email(errors, fields["email"])
        if isinstance(fields["email"], str):
            cleaned["email"] = fields["email"].strip()
    if "name" in fields:
        _check_user_name(errors, fields["name"])
        if isinstance(fields["name"], str):
            cleaned["name"] = fields["name"].strip()
    if "role" in fields:
        if fields["role"] not in ROLES:
            errors.append(FieldError("role", "Role must be either admin or user"))
        cleaned["role"] = fields["role"]
    if errors:
        raise ValidationError("Validation failed", errors)
    return cleaned


def validate_change_password(fields: Mapping[str, Any]) -> tuple[str, str]:
    """Return (current_password, new_password)."""
    errors: list[FieldError] = []
    current = fields.get("currentPassword")
    new = fields.get("newPassword")
    if _is_blank(current):
        errors.append(FieldError("currentPassword", "Current password is required"))
    if _is_blank(new):
        errors.append(FieldError("newPassword", "New password is required"))
    elif not isinstance(new, str) or len(new) < PASSWORD_MIN_LEN:
        errors.append(
            FieldError(
                "newPassword", f"New password must be at least {PASSWORD_MIN_LEN} characters"
            )
        )
    if errors:
        raise ValidationError("Validation failed", errors)
    return str(current), str(new)

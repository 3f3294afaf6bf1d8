"""Product endpoints: public listing/search/detail, admin-only create/update/delete with images."""

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, UploadFile, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from storefront.api.auth import require_admin
from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.errors import AppError, BadRequestError, UnexpectedFileFieldError
from storefront.schemas.auth import CurrentUser
from storefront.schemas.common import Envelope
from storefront.schemas.product import ProductListData, ProductOut
from storefront.services import products as product_service
from storefront.services.images import ImageAttachmentManager, ImageUpload
from storefront.services.pagination import Page
from storefront.services.storage import StorageBackend
from storefront.services.validation import (
    validate_id,
    validate_pagination,
    validate_product_filters,
    validate_product_payload,
    validate_search,
)

router = APIRouter()

IMAGE_FIELD = "images"


def get_storage(request: Request) -> StorageBackend:
    """Dependency: the storage backend chosen at startup (see main.py)."""
    return request.app.state.storage


def get_image_manager(
    storage: Annotated[StorageBackend, Depends(get_storage)],
) -> ImageAttachmentManager:
    return ImageAttachmentManager(
        storage,
        max_files=settings.MAX_UPLOAD_FILES,
        max_bytes=settings.MAX_UPLOAD_BYTES,
    )


def _is_upload_file(obj: object) -> bool:
    """True if obj is an uploaded file (UploadFile or file-like with filename and read)."""
    if isinstance(obj, UploadFile):
        return True
    return (
        hasattr(obj, "read")
        and callable(getattr(obj, "read", None))
        and hasattr(obj, "filename")
    )


async def _read_product_request(request: Request) -> tuple[dict[str, Any], list[ImageUpload]]:
    """Return (fields, image uploads) from a JSON or multipart/form-data body."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json":
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BadRequestError(f"Invalid JSON: {e!s}") from e
        if not isinstance(body, dict):
            raise BadRequestError("JSON body must be an object.")
        return body, []
    if content_type in ("multipart/form-data", "application/x-www-form-urlencoded"):
        form = await request.form()
        fields: dict[str, Any] = {}
        uploads: list[ImageUpload] = []
        for key, value in form.multi_items():
            if not _is_upload_file(value):
                fields[key] = value
                continue
            if key != IMAGE_FIELD:
                raise UnexpectedFileFieldError()
            filename = getattr(value, "filename", None) or ""
            data = await value.read()
            # Browsers send an empty part when no file was chosen.
            if not filename and not data:
                continue
            uploads.append(
                ImageUpload(
                    filename=filename,
                    content_type=(getattr(value, "content_type", None) or "").lower(),
                    data=data,
                )
            )
        return fields, uploads
    if not content_type:
        return {}, []
    raise AppError(
        "Content-Type must be application/json or multipart/form-data.",
        status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    )


def _list_data(page: Page, **extra: Any) -> ProductListData:
    return ProductListData(
        products=[ProductOut.model_validate(p) for p in page.items],
        total_pages=page.total_pages,
        current_page=page.page,
        total_products=page.total,
        **extra,
    )


@router.get("", response_model=Envelope[ProductListData])
def list_products(
    db: Annotated[Session, Depends(get_db)],
    page: str | None = None,
    limit: str | None = None,
    search: str | None = None,
    category: str | None = None,
    min_price: Annotated[str | None, Query(alias="minPrice")] = None,
    max_price: Annotated[str | None, Query(alias="maxPrice")] = None,
    in_stock: Annotated[str | None, Query(alias="inStock")] = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    sort_order: Annotated[str | None, Query(alias="sortOrder")] = None,
) -> Envelope[ProductListData]:
    """
    List products, newest first by default.

    Filters: category (comma-separated for several), minPrice/maxPrice, inStock,
    sortBy (name, price, stock, createdAt), sortOrder (ASC/DESC). Passing `search`
    switches to a name/description search.
    """
    pagination = validate_pagination(page, limit)
    if search is not None:
        term = validate_search(search)
        result = product_service.search_products(db, term, pagination)
        return Envelope(data=_list_data(result, search_term=term))

    filters = validate_product_filters(
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    echoed = {
        "category": category,
        "minPrice": min_price,
        "maxPrice": max_price,
        "inStock": in_stock,
        "sortBy": sort_by,
        "sortOrder": sort_order,
    }
    result = product_service.list_products(db, pagination, filters)
    return Envelope(
        data=_list_data(result, filters={k: v for k, v in echoed.items() if v is not None})
    )


@router.get("/search", response_model=Envelope[ProductListData])
def search_products(
    db: Annotated[Session, Depends(get_db)],
    search: str | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> Envelope[ProductListData]:
    """Case-insensitive search over product name and description."""
    term = validate_search(search)
    pagination = validate_pagination(page, limit)
    result = product_service.search_products(db, term, pagination)
    return Envelope(data=_list_data(result, search_term=term))


@router.get("/{product_id}", response_model=Envelope[ProductOut])
def get_product(
    product_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[ProductOut]:
    product = product_service.get_product(db, validate_id(product_id, "Product ID"))
    return Envelope(data=ProductOut.model_validate(product))


@router.post("", response_model=Envelope[ProductOut], status_code=status.HTTP_201_CREATED)
async def create_product(
    request: Request,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    images: Annotated[ImageAttachmentManager, Depends(get_image_manager)],
) -> Envelope[ProductOut]:
    """
    Create a product (admin only).

    - **JSON body**: `Content-Type: application/json` with the product fields.
    - **Multipart**: `multipart/form-data` with the product fields plus up to five
      files under `images` (JPEG, PNG, GIF or WebP, 5 MB each). The first file
      becomes the primary image.
    """
    fields, uploads = await _read_product_request(request)
    images.check_uploads(uploads)
    payload = validate_product_payload(fields)
    # Storage and database calls block; keep them off the event loop.
    product = await run_in_threadpool(
        product_service.create_product, db, images, payload, uploads
    )
    return Envelope(
        message="Product created successfully",
        data=ProductOut.model_validate(product),
    )


@router.put("/{product_id}", response_model=Envelope[ProductOut])
async def update_product(
    product_id: str,
    request: Request,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    images: Annotated[ImageAttachmentManager, Depends(get_image_manager)],
) -> Envelope[ProductOut]:
    """
    Update a product (admin only). Only the fields sent are changed. Sending
    images replaces the whole image set.
    """
    pid = validate_id(product_id, "Product ID")
    fields, uploads = await _read_product_request(request)
    images.check_uploads(uploads)
    payload = validate_product_payload(fields, partial=True)
    product = await run_in_threadpool(
        product_service.update_product, db, images, pid, payload, uploads
    )
    return Envelope(
        message="Product updated successfully",
        data=ProductOut.model_validate(product),
    )


@router.delete("/{product_id}", response_model=Envelope[None])
def delete_product(
    product_id: str,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    images: Annotated[ImageAttachmentManager, Depends(get_image_manager)],
) -> Envelope[None]:
    """Delete a product, its image rows and its stored image files (admin only)."""
    product_service.delete_product(db, images, validate_id(product_id, "Product ID"))
    return Envelope(message="Product deleted successfully")

"""Product queries and CRUD, including the product image set."""

import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError
from storefront.models import Product, ProductImage
from storefront.services.images import ImageAttachment, ImageAttachmentManager, ImageUpload
from storefront.services.pagination import Page, paginate
from storefront.services.validation import Pagination, ProductFilters

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "stock": Product.stock,
    "createdAt": Product.created_at,
}

UPDATABLE_FIELDS = ("name", "description", "price", "stock", "category")


def build_product_conditions(filters: ProductFilters) -> list[Any]:
    """Translate parsed filters into SQL predicates (ANDed by the caller)."""
    conditions: list[Any] = []
    if len(filters.categories) == 1:
        conditions.append(Product.category == filters.categories[0])
    elif filters.categories:
        conditions.append(Product.category.in_(filters.categories))
    if filters.min_price is not None:
        conditions.append(Product.price >= filters.min_price)
    if filters.max_price is not None:
        conditions.append(Product.price <= filters.max_price)
    if filters.in_stock is True:
        conditions.append(Product.stock > 0)
    elif filters.in_stock is False:
        conditions.append(Product.stock == 0)
    return conditions


def build_ordering(sort_by: str, sort_order: str) -> list[Any]:
    """ORDER BY the requested column, then id in the same direction for stable pages."""
    column = SORT_COLUMNS.get(sort_by, Product.created_at)
    if sort_order == "ASC":
        return [column.asc(), Product.id.asc()]
    return [column.desc(), Product.id.desc()]


def list_products(db: Session, pagination: Pagination, filters: ProductFilters) -> Page[Product]:
    query = db.query(Product).filter(*build_product_conditions(filters))
    query = query.order_by(*build_ordering(filters.sort_by, filters.sort_order))
    return paginate(query, pagination)


def search_products(db: Session, term: str, pagination: Pagination) -> Page[Product]:
    """Case-insensitive substring match on name or description, newest first."""
    pattern = f"%{term}%"
    query = (
        db.query(Product)
        .filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        .order_by(*build_ordering("createdAt", "DESC"))
    )
    return paginate(query, pagination)


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product


def _image_rows(attachments: list[ImageAttachment]) -> list[ProductImage]:
    return [
        ProductImage(
            image_url=a.image_url,
            image_filename=a.image_filename,
            is_primary=a.is_primary,
            sort_order=a.sort_order,
        )
        for a in attachments
    ]


def create_product(
    db: Session,
    images: ImageAttachmentManager,
    payload: dict[str, Any],
    uploads: list[ImageUpload] | None = None,
) -> Product:
    """
    Insert the product and its image rows in one commit.

    Files are stored first; if anything fails before the commit, they are deleted again.
    """
    attachments = images.store(uploads or [])
    try:
        product = Product(**payload)
        product.images = _image_rows(attachments)
        db.add(product)
        db.commit()
    except Exception:
        db.rollback()
        images.discard(attachments)
        raise
    db.refresh(product)
    logger.info("Created product id=%s with %s image(s)", product.id, len(attachments))
    return product


def update_product(
    db: Session,
    images: ImageAttachmentManager,
    product_id: int,
    payload: dict[str, Any],
    uploads: list[ImageUpload] | None = None,
) -> Product:
    """
    Apply a partial update. New uploads replace the whole image set: old rows are
    removed and new rows inserted in the same transaction as the field changes, and
    the old files are deleted (best-effort) only after that commit succeeds.
    """
    product = get_product(db, product_id)
    attachments = images.store(uploads or [])
    old_keys: list[str] = []
    try:
        for key, value in payload.items():
            if key in UPDATABLE_FIELDS:
                setattr(product, key, value)
        if attachments:
            old_keys = [img.image_filename for img in product.images]
            # delete-orphan removes the old rows at flush, before the new ones insert
            product.images.clear()
            db.flush()
            product.images.extend(_image_rows(attachments))
        db.commit()
    except Exception:
        db.rollback()
        images.discard(attachments)
        raise
    if old_keys:
        removed = images.remove(old_keys)
        logger.info(
            "Replaced images of product id=%s: %s new, %s/%s old file(s) removed",
            product_id,
            len(attachments),
            removed,
            len(old_keys),
        )
    db.refresh(product)
    return product


def delete_product(db: Session, images: ImageAttachmentManager, product_id: int) -> None:
    """Delete the row (image rows cascade), then best-effort delete the stored files."""
    product = get_product(db, product_id)
    keys = [img.image_filename for img in product.images]
    db.delete(product)
    db.commit()
    images.remove(keys)
    logger.info("Deleted product id=%s and %s image file(s)", product_id, len(keys))

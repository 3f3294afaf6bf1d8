"""
Insert demo users and products into an empty database. Run from project root:

  python -m storefront.scripts.seed

Users: admin@example.com / user@example.com, both with password "password123".
Existing rows with the same email or product name are left alone.
"""

import logging
import sys
import time
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.core.config import get_settings
from storefront.core.database import SessionLocal
from storefront.core.security import hash_password
from storefront.models import Product, ProductImage, User

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
# Timestamps carry a Z suffix, so format them in UTC.
logging.Formatter.converter = time.gmtime
logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    {"email": "admin@example.com", "name": "Admin User", "role": "admin"},
    {"email": "user@example.com", "name": "Regular User", "role": "user"},
]

DEMO_PRODUCTS = [
    {
        "name": "MacBook Pro",
        "description": "16-inch MacBook Pro with M3 Pro chip",
        "price": Decimal("2399.99"),
        "stock": 15,
        "category": "Electronics",
        "images": ["macbook-front.png", "macbook-side.png"],
    },
    {
        "name": "Office Desk",
        "description": "Large wooden office desk with storage",
        "price": Decimal("199.99"),
        "stock": 5,
        "category": "Furniture",
        "images": ["office-desk.png"],
    },
]


def seed(db: Session, public_base_url: str) -> tuple[int, int]:
    """Insert missing demo rows. Returns (users_created, products_created)."""
    users_created = 0
    password_hash = hash_password(DEMO_PASSWORD)
    for row in DEMO_USERS:
        if db.query(User).filter(User.email == row["email"]).first() is not None:
            continue
        db.add(User(password_hash=password_hash, **row))
        users_created += 1

    products_created = 0
    for row in DEMO_PRODUCTS:
        row = dict(row)
        filenames = row.pop("images")
        if db.query(Product).filter(Product.name == row["name"]).first() is not None:
            continue
        product = Product(**row)
        product.images = [
            ProductImage(
                image_url=f"{public_base_url}/uploads/{filename}",
                image_filename=filename,
                is_primary=index == 0,
                sort_order=index,
            )
            for index, filename in enumerate(filenames)
        ]
        db.add(product)
        products_created += 1

    db.commit()
    return users_created, products_created


def main() -> int:
    settings = get_settings()
    db = SessionLocal()
    try:
        users_created, products_created = seed(db, settings.PUBLIC_BASE_URL)
        logger.info("Seed completed: users_created=%s products_created=%s", users_created, products_created)
        return 0
    except Exception as e:
        logger.exception("Seed failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())

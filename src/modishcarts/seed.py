"""
Seed script -- populates the database with development data.

Run with:
    modishcarts-seed        (or: python -m modishcarts.seed)

Every row is looked up by its natural key (email, slug, sku, ...) before it
is inserted, so re-running the script never duplicates data.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from modishcarts.core.config import Config
from modishcarts.core.middleware import configure_logging
from modishcarts.core.security import hash_password
from modishcarts.db import Database
from modishcarts.models import Address, CartItem, Category, Product, ProductImage, User

logger = logging.getLogger(__name__)

USERS = [
    {"email": "admin@modishcarts.com", "password": "admin123", "first_name": "Admin",
     "last_name": "User", "is_admin": True},
    {"email": "test@modishcarts.com", "password": "test123", "first_name": "Test",
     "last_name": "User", "phone": "+1234567890"},
    {"email": "inactive@modishcarts.com", "password": "test123", "first_name": "Inactive",
     "last_name": "User", "is_active": False},
]

CATEGORIES = [
    {"name": "Electronics", "slug": "electronics",
     "description": "Latest gadgets and electronic devices",
     "image": "https://images.unsplash.com/photo-1518276780018-1f4e79b5ac8d?w=400"},
    {"name": "Clothing", "slug": "clothing",
     "description": "Fashion and apparel for all occasions",
     "image": "https://images.unsplash.com/photo-1441986300917-64674bd600d8?w=400"},
    {"name": "Home & Garden", "slug": "home-garden",
     "description": "Everything for your home and garden needs",
     "image": "https://images.unsplash.com/photo-1586023492125-27b2c045efd7?w=400"},
    {"name": "Books", "slug": "books",
     "description": "Books, magazines, and educational materials",
     "image": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=400"},
]

PRODUCTS = [
    {
        "name": "Wireless Bluetooth Headphones",
        "slug": "wireless-bluetooth-headphones",
        "description": "High-quality wireless headphones with noise cancellation and long battery life.",
        "short_desc": "Premium wireless headphones with crystal clear sound",
        "sku": "WBH-001",
        "price": Decimal("149.99"),
        "compare_price": Decimal("199.99"),
        "category": "electronics",
        "inventory_qty": 50,
        "weight": 0.3,
        "is_featured": True,
        "tags": ["wireless", "bluetooth", "noise-cancellation", "premium"],
        "meta_title": "Wireless Bluetooth Headphones - Premium Audio Experience",
        "meta_desc": "Experience superior sound quality with our wireless Bluetooth headphones "
                     "featuring noise cancellation.",
    },
    {
        "name": "Classic Cotton T-Shirt",
        "slug": "classic-cotton-t-shirt",
        "description": "Comfortable 100% cotton t-shirt in various colors. Perfect for casual wear.",
        "short_desc": "Soft and comfortable cotton t-shirt",
        "sku": "CCT-001",
        "price": Decimal("24.99"),
        "compare_price": Decimal("34.99"),
        "category": "clothing",
        "inventory_qty": 100,
        "weight": 0.2,
        "is_featured": True,
        "tags": ["cotton", "casual", "comfortable", "unisex"],
        "meta_title": "Classic Cotton T-Shirt - Comfortable Casual Wear",
        "meta_desc": "Soft and comfortable 100% cotton t-shirt perfect for everyday wear.",
    },
    {
        "name": "Smart Home Security Camera",
        "slug": "smart-home-security-camera",
        "description": "WiFi-enabled security camera with 1080p HD video, night vision, and mobile app control.",
        "short_desc": "1080p HD WiFi security camera with night vision",
        "sku": "SHSC-001",
        "price": Decimal("89.99"),
        "compare_price": Decimal("129.99"),
        "category": "electronics",
        "inventory_qty": 25,
        "weight": 0.5,
        "tags": ["security", "wifi", "hd", "night-vision", "smart-home"],
        "meta_title": "Smart Home Security Camera - 1080p HD WiFi Surveillance",
        "meta_desc": "Keep your home secure with our WiFi-enabled HD security camera featuring night vision.",
    },
    {
        "name": "Ceramic Plant Pot Set",
        "slug": "ceramic-plant-pot-set",
        "description": "Set of 3 beautiful ceramic plant pots in different sizes, perfect for indoor plants.",
        "short_desc": "Set of 3 decorative ceramic plant pots",
        "sku": "CPPS-001",
        "price": Decimal("39.99"),
        "category": "home-garden",
        "inventory_qty": 30,
        "weight": 1.2,
        "tags": ["ceramic", "plants", "home-decor", "indoor", "set"],
        "meta_title": "Ceramic Plant Pot Set - Beautiful Home Decor",
        "meta_desc": "Enhance your home with our beautiful set of 3 ceramic plant pots.",
    },
    {
        "name": "The Art of Programming",
        "slug": "the-art-of-programming",
        "description": "Comprehensive guide to modern programming techniques and best practices.",
        "short_desc": "Essential programming guide for developers",
        "sku": "TAP-001",
        "price": Decimal("59.99"),
        "category": "books",
        "inventory_qty": 40,
        "weight": 0.8,
        "tags": ["programming", "development", "technical", "education"],
        "meta_title": "The Art of Programming - Complete Developer Guide",
        "meta_desc": "Master programming with our comprehensive guide covering modern techniques "
                     "and best practices.",
    },
]

IMAGE_URLS = [
    ("https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=600&h=600&fit=crop", "Main Image"),
    ("https://images.unsplash.com/photo-1523275335684-37898b6baf30?w=600&h=600&fit=crop", "Secondary Image"),
]

TEST_ADDRESS = {
    "first_name": "Test",
    "last_name": "User",
    "street1": "123 Main St",
    "city": "Anytown",
    "state": "CA",
    "postal_code": "12345",
    "country": "US",
}


def _get_or_create_user(session: Session, data: dict, rounds: int) -> User:
    user = session.scalars(select(User).where(User.email == data["email"])).first()
    if user is not None:
        return user
    fields = {k: v for k, v in data.items() if k != "password"}
    user = User(password_hash=hash_password(data["password"], rounds), **fields)
    session.add(user)
    session.flush()
    logger.info(f"  [+] User {user.email}")
    return user


def _get_or_create_category(session: Session, data: dict) -> Category:
    category = session.scalars(select(Category).where(Category.slug == data["slug"])).first()
    if category is None:
        category = Category(**data)
        session.add(category)
        session.flush()
        logger.info(f"  [+] Category {category.name}")
    return category


def _get_or_create_product(session: Session, data: dict, categories: dict) -> Product:
    product = session.scalars(select(Product).where(Product.sku == data["sku"])).first()
    if product is not None:
        return product
    fields = {k: v for k, v in data.items() if k != "category"}
    product = Product(category_id=categories[data["category"]].id, **fields)
    product.images = [
        ProductImage(url=url, alt_text=f"{data['name']} - {label}", sort_order=index)
        for index, (url, label) in enumerate(IMAGE_URLS)
    ]
    session.add(product)
    session.flush()
    logger.info(f"  [+] Product {product.name}")
    return product


def _ensure_default_address(session: Session, user: User, address_type: str) -> Optional[Address]:
    stmt = select(Address).where(Address.user_id == user.id, Address.type == address_type)
    if session.scalars(stmt).first() is not None:
        return None
    address = Address(user_id=user.id, type=address_type, is_default=True, **TEST_ADDRESS)
    session.add(address)
    session.flush()
    logger.info(f"  [+] {address_type} address for {user.email}")
    return address


def seed(session: Session, config: Optional[Config] = None) -> dict:
    """Insert the development data set. Returns the seeded users and products by key."""
    config = config or Config()
    rounds = config.security.password_hash_rounds

    users = {data["email"]: _get_or_create_user(session, data, rounds) for data in USERS}
    categories = {data["slug"]: _get_or_create_category(session, data) for data in CATEGORIES}
    products = {data["sku"]: _get_or_create_product(session, data, categories) for data in PRODUCTS}

    test_user = users["test@modishcarts.com"]
    _ensure_default_address(session, test_user, "SHIPPING")
    _ensure_default_address(session, test_user, "BILLING")

    headphones = products["WBH-001"]
    existing = session.scalars(
        select(CartItem).where(CartItem.user_id == test_user.id, CartItem.product_id == headphones.id)
    ).first()
    if existing is None:
        session.add(CartItem(user_id=test_user.id, product_id=headphones.id, quantity=2))
        session.flush()
        logger.info(f"  [+] Cart item for {test_user.email}")

    return {"users": users, "categories": categories, "products": products}


def main() -> None:
    config = Config()
    configure_logging(config.app.log_level)
    database = Database(config.database.url, echo=config.database.echo)
    database.create_all()

    logger.info("Seeding database...")
    with database.session_scope() as session:
        seed(session, config)
    logger.info("Seeding complete.")
    database.dispose()


if __name__ == "__main__":
    main()

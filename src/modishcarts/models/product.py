from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Integer,
    Numeric, String, Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from modishcarts.db import Base, new_id
from modishcarts.utils.date_utils import DateUtils

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Category(Base):
    """
    Top-level grouping for products (e.g. Electronics, Clothing).
    """

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False)
    slug = Column(String(120), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    image = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=DateUtils.now_utc)

    products = relationship("Product", back_populates="category")

    def __repr__(self) -> str:
        return f"<Category id={self.id} slug={self.slug!r}>"


class Product(Base):
    """
    A sellable product.

    price is a fixed-point Numeric to avoid floating-point rounding.
    inventory_qty is decremented at checkout and restored when a pending
    order is cancelled. Inactive products are hidden from everyone but
    administrators.
    """

    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=False, default="")
    short_desc = Column(String(500), nullable=True)
    sku = Column(String(64), nullable=False, unique=True)
    price = Column(Numeric(10, 2), nullable=False)
    compare_price = Column(Numeric(10, 2), nullable=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    inventory_qty = Column(Integer, nullable=False, default=0)
    weight = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    tags = Column(JSONType, nullable=False, default=list)
    meta_title = Column(String(255), nullable=True)
    meta_desc = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=DateUtils.now_utc)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=DateUtils.now_utc, onupdate=DateUtils.now_utc
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price"),
        CheckConstraint("inventory_qty >= 0", name="ck_product_inventory"),
    )

    category = relationship("Category", back_populates="products")
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.sort_order",
    )
    variants = relationship(
        "ProductVariant", back_populates="product", cascade="all, delete-orphan"
    )
    reviews = relationship(
        "Review", back_populates="product", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(String(36), primary_key=True, default=new_id)
    product_id = Column(
        String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    url = Column(Text, nullable=False)
    alt_text = Column(String(255), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="images")

    def __repr__(self) -> str:
        return f"<ProductImage id={self.id} sort_order={self.sort_order}>"


class ProductVariant(Base):
    """
    A purchasable option of a product (size M, colour red).

    options holds arbitrary key/value pairs like {"size": "M"}. A null
    price means the variant sells at the parent product's price.
    """

    __tablename__ = "product_variants"

    id = Column(String(36), primary_key=True, default=new_id)
    product_id = Column(
        String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(255), nullable=False)
    sku = Column(String(64), nullable=False, unique=True)
    price = Column(Numeric(10, 2), nullable=True)
    inventory_qty = Column(Integer, nullable=False, default=0)
    options = Column(JSONType, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint("inventory_qty >= 0", name="ck_variant_inventory"),
    )

    product = relationship("Product", back_populates="variants")

    @property
    def effective_price(self):
        return self.price if self.price is not None else self.product.price

    def __repr__(self) -> str:
        return f"<ProductVariant id={self.id} sku={self.sku!r}>"


class Review(Base):
    """
    A customer review. New reviews wait for moderation (is_approved) before
    they are shown on the product page.
    """

    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=new_id)
    product_id = Column(
        String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    rating = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    comment = Column(Text, nullable=False)
    is_approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=DateUtils.now_utc)

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
    )

    product = relationship("Product", back_populates="reviews")
    user = relationship("User")

    def __repr__(self) -> str:
        return f"<Review id={self.id} rating={self.rating}>"

import logging
import math
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from modishcarts.core.exceptions import ConflictError, NotFoundError, ValidationError
from modishcarts.models import Category, Product, ProductImage, Review, User
from modishcarts.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

SORT_ORDERS = {
    "newest": (Product.created_at.desc(), Product.id),
    "price_asc": (Product.price.asc(), Product.id),
    "price_desc": (Product.price.desc(), Product.id),
    "name": (Product.name.asc(), Product.id),
}

# Columns a product update may touch directly; images are handled separately.
_WRITABLE_FIELDS = (
    "name", "slug", "description", "short_desc", "sku", "price", "compare_price",
    "category_id", "inventory_qty", "weight", "is_active", "is_featured", "tags",
    "meta_title", "meta_desc",
)
_NULLABLE_FIELDS = ("short_desc", "compare_price", "weight", "meta_title", "meta_desc")


def _contains_pattern(term: str) -> str:
    """LIKE pattern matching `term` literally; backslash is the escape character."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ProductService:
    """
    Product catalog: listing, lookup, admin writes and reviews.

    Inactive products are invisible unless include_inactive is set, which
    routes only do for administrators.
    """

    def __init__(self, session: Session):
        self.session = session

    def list_products(self, filters: dict, include_inactive: bool = False) -> Tuple[List[Product], dict]:
        page = filters.get("page", 1)
        limit = filters.get("limit", 20)
        min_price = filters.get("min_price")
        max_price = filters.get("max_price")

        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("minPrice cannot be greater than maxPrice")

        conditions = []
        if not include_inactive:
            conditions.append(Product.is_active.is_(True))
        if filters.get("category_id"):
            conditions.append(Product.category_id == filters["category_id"])
        if filters.get("search"):
            pattern = _contains_pattern(filters["search"].strip())
            conditions.append(or_(
                Product.name.ilike(pattern, escape="\\"),
                Product.description.ilike(pattern, escape="\\"),
            ))
        if min_price is not None:
            conditions.append(Product.price >= min_price)
        if max_price is not None:
            conditions.append(Product.price <= max_price)
        if filters.get("featured") is not None:
            conditions.append(Product.is_featured.is_(filters["featured"]))

        total = self.session.scalar(select(func.count(Product.id)).where(*conditions))

        stmt = (
            select(Product)
            .where(*conditions)
            .options(selectinload(Product.category), selectinload(Product.images))
            .order_by(*SORT_ORDERS[filters.get("sort", "newest")])
            .offset((page - 1) * limit)
            .limit(limit)
        )
        products = list(self.session.scalars(stmt))

        pagination = {
            "page": page,
            "limit": limit,
            "totalItems": total,
            "totalPages": math.ceil(total / limit) if total else 0,
        }
        return products, pagination

    def get_product(self, product_id: str, include_inactive: bool = False) -> Product:
        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .options(
                selectinload(Product.category),
                selectinload(Product.images),
                selectinload(Product.variants),
                selectinload(Product.reviews).selectinload(Review.user),
            )
        )
        product = self.session.scalars(stmt).first()
        if product is None or (not product.is_active and not include_inactive):
            raise NotFoundError("Product")
        return product

    def create_product(self, data: dict) -> Product:
        data = dict(data)
        data["sku"] = ValidationUtils.normalize_sku(data["sku"])
        data["slug"] = data.get("slug") or ValidationUtils.slugify(data["name"])
        logger.info(f"Creating product {data['sku']}")

        self._check_category(data["category_id"])
        self._check_unique(data["sku"], data["slug"])

        images = data.pop("images", [])
        product = Product(**{k: v for k, v in data.items() if k in _WRITABLE_FIELDS})
        product.images = self._build_images(images)
        self.session.add(product)
        self._flush_or_conflict()

        logger.info(f"Created product {product.id} ({product.sku})")
        return product

    def update_product(self, product_id: str, data: dict) -> Product:
        product = self.get_product(product_id, include_inactive=True)
        data = dict(data)

        if "sku" in data:
            data["sku"] = ValidationUtils.normalize_sku(data["sku"])
        if "category_id" in data:
            self._check_category(data["category_id"])
        self._check_unique(data.get("sku"), data.get("slug"), exclude_id=product.id)

        for key, value in data.items():
            if key in _WRITABLE_FIELDS and (value is not None or key in _NULLABLE_FIELDS):
                setattr(product, key, value)
        if "images" in data:
            product.images = self._build_images(data["images"])

        self._flush_or_conflict()
        logger.info(f"Updated product {product.id}")
        return product

    def deactivate_product(self, product_id: str) -> Product:
        product = self.get_product(product_id, include_inactive=True)
        product.is_active = False
        self.session.flush()
        logger.info(f"Deactivated product {product.id}")
        return product

    def add_review(self, product_id: str, user: User, data: dict) -> Review:
        product = self.get_product(product_id)
        review = Review(
            product_id=product.id,
            user_id=user.id,
            rating=data["rating"],
            title=ValidationUtils.sanitize_text(data["title"], max_length=255),
            comment=ValidationUtils.sanitize_text(data["comment"], max_length=5000),
            is_approved=False,
        )
        review.user = user
        self.session.add(review)
        self.session.flush()
        logger.info(f"Review {review.id} submitted for product {product.id} by user {user.id}")
        return review

    # Private helpers
    def _check_category(self, category_id: str) -> None:
        if not ValidationUtils.validate_uuid(category_id) or self.session.get(Category, category_id) is None:
            raise ValidationError(f"categoryId: Category {category_id} does not exist")

    def _check_unique(self, sku: Optional[str], slug: Optional[str], exclude_id: Optional[str] = None) -> None:
        if sku:
            stmt = select(Product.id).where(Product.sku == sku)
            if exclude_id:
                stmt = stmt.where(Product.id != exclude_id)
            if self.session.scalar(stmt) is not None:
                raise ConflictError("Product with this SKU already exists", conflict_field="sku")
        if slug:
            stmt = select(Product.id).where(Product.slug == slug)
            if exclude_id:
                stmt = stmt.where(Product.id != exclude_id)
            if self.session.scalar(stmt) is not None:
                raise ConflictError("Product with this slug already exists", conflict_field="slug")

    @staticmethod
    def _build_images(images: List[dict]) -> List[ProductImage]:
        return [
            ProductImage(
                url=image["url"],
                alt_text=image.get("alt_text"),
                sort_order=image["sort_order"] if image.get("sort_order") is not None else index,
            )
            for index, image in enumerate(images)
        ]

    def _flush_or_conflict(self) -> None:
        try:
            self.session.flush()
        except IntegrityError as e:
            logger.warning(f"Product write violated a constraint: {e.orig}")
            raise ConflictError("Product with this SKU or slug already exists")

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from modishcarts.core.exceptions import NotFoundError, ValidationError
from modishcarts.models import CartItem, Product
from modishcarts.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartOwner:
    """Either a registered user or a guest browser session."""
    user_id: Optional[str] = None
    session_id: Optional[str] = None

    def __post_init__(self):
        if (self.user_id is None) == (self.session_id is None):
            raise ValueError("A cart owner is exactly one of user_id or session_id")

    def clause(self):
        if self.user_id is not None:
            return CartItem.user_id == self.user_id
        return CartItem.session_id == self.session_id

    def __str__(self) -> str:
        return f"user {self.user_id}" if self.user_id else f"session {self.session_id}"


class CartService:
    """
    Shopping cart business logic.

    Business rules:
    - (owner, product) is unique: adding a product that is already in the
      cart sums the quantities on the existing line
    - a line never exceeds the product's inventory or max_quantity_per_item
    - inactive products cannot be added
    - on login a guest cart is merged into the user's cart
    """

    def __init__(self, session: Session, max_quantity_per_item: int = 99):
        self.session = session
        self.max_quantity_per_item = max_quantity_per_item

    def get_items(self, owner: CartOwner) -> List[CartItem]:
        stmt = (
            select(CartItem)
            .where(owner.clause())
            .options(selectinload(CartItem.product).selectinload(Product.images))
            .order_by(CartItem.created_at, CartItem.id)
        )
        return list(self.session.scalars(stmt))

    @staticmethod
    def summarize(items: List[CartItem]) -> dict:
        subtotal = sum((Decimal(item.product.price) * item.quantity for item in items), Decimal("0"))
        return {
            "totalItems": sum(item.quantity for item in items),
            "uniqueItems": len(items),
            "subtotal": float(subtotal.quantize(Decimal("0.01"))),
        }

    def add_item(self, owner: CartOwner, product_id: str, quantity: int) -> Tuple[CartItem, bool]:
        """
        Add `quantity` of a product to the cart.

        Returns (item, created). created is False when the product was
        already in the cart and the quantities were summed.
        """
        logger.info(f"Adding product {product_id} x{quantity} to cart of {owner}")

        product = self._get_purchasable_product(product_id)
        existing = self._find_line(owner, product.id)

        new_quantity = quantity + (existing.quantity if existing else 0)
        self._check_quantity(product, new_quantity)

        if existing:
            existing.quantity = new_quantity
            self.session.flush()
            logger.info(f"Cart line {existing.id} for {owner} now at quantity {new_quantity}")
            return existing, False

        item = CartItem(
            user_id=owner.user_id,
            session_id=owner.session_id,
            product_id=product.id,
            quantity=quantity,
        )
        item.product = product
        self.session.add(item)
        self.session.flush()
        return item, True

    def update_item(self, owner: CartOwner, item_id: str, quantity: int) -> CartItem:
        item = self._get_owned_line(owner, item_id)
        self._check_quantity(item.product, quantity)
        item.quantity = quantity
        self.session.flush()
        logger.info(f"Cart line {item.id} for {owner} set to quantity {quantity}")
        return item

    def remove_item(self, owner: CartOwner, item_id: str) -> None:
        item = self._get_owned_line(owner, item_id)
        self.session.delete(item)
        self.session.flush()
        logger.info(f"Removed cart line {item_id} from cart of {owner}")

    def clear(self, owner: CartOwner) -> int:
        items = self.get_items(owner)
        for item in items:
            self.session.delete(item)
        self.session.flush()
        logger.info(f"Cleared {len(items)} lines from cart of {owner}")
        return len(items)

    def merge_guest_cart(self, user_id: str, session_id: str) -> dict:
        """
        Move a guest session's cart into a user's cart.

        Lines for products the user already has are summed into the user's
        line; other lines are re-assigned to the user. Quantities are capped
        at the product's inventory, and lines for inactive or sold-out
        products are dropped.
        """
        guest = CartOwner(session_id=session_id)
        user = CartOwner(user_id=user_id)

        guest_items = self.get_items(guest)
        user_lines = {item.product_id: item for item in self.get_items(user)}

        merged = moved = dropped = 0
        for guest_item in guest_items:
            product = guest_item.product
            cap = min(product.inventory_qty, self.max_quantity_per_item)
            target = user_lines.get(guest_item.product_id)

            if not product.is_active or cap < 1:
                self.session.delete(guest_item)
                dropped += 1
                continue

            if target is not None:
                target.quantity = min(target.quantity + guest_item.quantity, cap)
                self.session.delete(guest_item)
                merged += 1
            else:
                guest_item.user_id = user_id
                guest_item.session_id = None
                guest_item.quantity = min(guest_item.quantity, cap)
                user_lines[guest_item.product_id] = guest_item
                moved += 1

        self.session.flush()
        if guest_items:
            logger.info(
                f"Merged guest cart {session_id} into user {user_id}: "
                f"{merged} summed, {moved} moved, {dropped} dropped"
            )
        return {"merged": merged, "moved": moved, "dropped": dropped}

    # Private helpers
    def _get_purchasable_product(self, product_id: str) -> Product:
        product = None
        if ValidationUtils.validate_uuid(product_id):
            product = self.session.get(Product, product_id)
        if product is None or not product.is_active:
            logger.warning(f"Rejected cart add for unknown or inactive product {product_id}")
            raise ValidationError(f"Invalid product ID: product {product_id} is not available")
        return product

    def _find_line(self, owner: CartOwner, product_id: str) -> Optional[CartItem]:
        stmt = select(CartItem).where(owner.clause(), CartItem.product_id == product_id)
        return self.session.scalars(stmt).first()

    def _get_owned_line(self, owner: CartOwner, item_id: str) -> CartItem:
        item = None
        if ValidationUtils.validate_uuid(item_id):
            stmt = select(CartItem).where(owner.clause(), CartItem.id == item_id)
            item = self.session.scalars(stmt).first()
        if item is None:
            raise NotFoundError("Cart item")
        return item

    def _check_quantity(self, product: Product, quantity: int) -> None:
        if quantity > self.max_quantity_per_item:
            raise ValidationError(
                f"Cannot have more than {self.max_quantity_per_item} of the same item in the cart"
            )
        if quantity > product.inventory_qty:
            raise ValidationError(
                f"Insufficient stock. Available: {product.inventory_qty}, requested: {quantity}."
            )

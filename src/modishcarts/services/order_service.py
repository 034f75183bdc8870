import logging
import secrets
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from modishcarts.core.exceptions import ConflictError, NotFoundError, ValidationError
from modishcarts.models import Address, CartItem, Order, OrderItem, Product, User
from modishcarts.services.address_service import AddressService
from modishcarts.services.cart_service import CartOwner, CartService
from modishcarts.utils.date_utils import DateUtils
from modishcarts.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def quantize(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


class OrderService:
    """
    Checkout and order lifecycle.

    Checkout runs inside the request's transaction: inventory decrements,
    order rows and cart clearing either all commit or all roll back.
    """

    tax_rate = Decimal("0.08")
    flat_shipping = Decimal("7.99")
    free_shipping_threshold = Decimal("50.00")

    def __init__(self, session: Session):
        self.session = session
        self.addresses = AddressService(session)
        self.carts = CartService(session)

    def checkout(self, user: User, data: dict) -> Order:
        logger.info(f"Checkout started for user {user.id}")
        owner = CartOwner(user_id=user.id)

        # Lock product rows so concurrent checkouts cannot oversell.
        stmt = (
            select(CartItem, Product)
            .join(Product, CartItem.product_id == Product.id)
            .where(owner.clause())
            .order_by(Product.id)
            .with_for_update(of=Product)
        )
        lines = self.session.execute(stmt).all()
        if not lines:
            raise ValidationError("Cart is empty")

        for item, product in lines:
            if not product.is_active:
                raise ValidationError(f"Product {product.sku} is no longer available")
            if item.quantity > product.inventory_qty:
                raise ValidationError(
                    f"Insufficient stock for {product.sku}. "
                    f"Available: {product.inventory_qty}, requested: {item.quantity}."
                )

        shipping = self._resolve_address(user.id, data.get("shipping_address_id"), "SHIPPING")
        billing = self._resolve_address(user.id, data.get("billing_address_id"), "BILLING") or shipping

        subtotal = quantize(sum((product.price * item.quantity for item, product in lines), Decimal("0")))
        tax = quantize(subtotal * self.tax_rate)
        shipping_amount = self.calculate_shipping(subtotal)

        order = Order(
            order_number=self._generate_order_number(),
            user_id=user.id,
            status="PENDING",
            subtotal=subtotal,
            tax_amount=tax,
            shipping_amount=shipping_amount,
            total_amount=subtotal + tax + shipping_amount,
            shipping_address_id=shipping.id if shipping else None,
            billing_address_id=billing.id if billing else None,
            notes=data.get("notes"),
        )
        for item, product in lines:
            order.items.append(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    sku=product.sku,
                    unit_price=product.price,
                    quantity=item.quantity,
                    total_price=quantize(product.price * item.quantity),
                )
            )
            product.inventory_qty -= item.quantity

        self.session.add(order)
        self.carts.clear(owner)
        self.session.flush()

        logger.info(f"Order {order.order_number} created for user {user.id}: total={order.total_amount}")
        return order

    def calculate_shipping(self, subtotal: Decimal) -> Decimal:
        if subtotal >= self.free_shipping_threshold:
            return Decimal("0.00")
        return self.flat_shipping

    def list_orders(self, user: User) -> List[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user.id)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc())
        )
        return list(self.session.scalars(stmt))

    def get_order(self, user: User, order_id: str) -> Order:
        order = None
        if ValidationUtils.validate_uuid(order_id):
            stmt = select(Order).where(Order.id == order_id).options(selectinload(Order.items))
            order = self.session.scalars(stmt).first()
        if order is None or (order.user_id != user.id and not user.is_admin):
            raise NotFoundError("Order")
        return order

    def cancel_order(self, user: User, order_id: str) -> Order:
        order = self.get_order(user, order_id)
        if order.status != "PENDING":
            raise ConflictError(f"Only pending orders can be cancelled (status is {order.status})")

        for line in order.items:
            if line.product_id is None:
                continue
            product = self.session.get(Product, line.product_id)
            if product is not None:
                product.inventory_qty += line.quantity

        order.status = "CANCELLED"
        self.session.flush()
        logger.info(f"Order {order.order_number} cancelled, inventory restored")
        return order

    # Private helpers
    def _resolve_address(self, user_id: str, address_id: Optional[str], address_type: str) -> Optional[Address]:
        if address_id:
            return self.addresses.get_address(user_id, address_id)
        return self.addresses.get_default(user_id, address_type)

    def _generate_order_number(self) -> str:
        today = DateUtils.now_utc().strftime("%Y%m%d")
        return f"MC-{today}-{secrets.token_hex(3).upper()}"

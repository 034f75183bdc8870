from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer,
    Numeric, String, Text, text,
)
from sqlalchemy.orm import relationship

from modishcarts.db import Base, enum_check, new_id
from modishcarts.utils.date_utils import DateUtils

ADDRESS_TYPES = ("SHIPPING", "BILLING")
ORDER_STATUSES = ("PENDING", "PAID", "SHIPPED", "DELIVERED", "CANCELLED", "REFUNDED")


class Address(Base):
    """
    A postal address belonging to a user.

    A user has at most one default address per type. The partial unique
    index enforces that at the database level; AddressService clears the
    previous default before setting a new one.
    """

    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type = Column(String(16), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    company = Column(String(255), nullable=True)
    street1 = Column(String(255), nullable=False)
    street2 = Column(String(255), nullable=True)
    city = Column(String(120), nullable=False)
    state = Column(String(120), nullable=False)
    postal_code = Column(String(20), nullable=False)
    country = Column(String(2), nullable=False, default="US")
    phone = Column(String(32), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=DateUtils.now_utc)

    __table_args__ = (
        CheckConstraint(enum_check("type", ADDRESS_TYPES), name="ck_address_type"),
        Index(
            "uq_address_default_per_type",
            "user_id",
            "type",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
    )

    user = relationship("User", back_populates="addresses")

    def __repr__(self) -> str:
        return f"<Address id={self.id} type={self.type} city={self.city!r}>"


class Order(Base):
    """
    A purchase made by checking out a cart.

    Amounts are stored redundantly alongside order_items as an audit trail:
    later price changes on the product do not alter what was charged.
    status is a CHECK-constrained string rather than a database ENUM so new
    statuses only need an ALTER TABLE.
    """

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    order_number = Column(String(32), nullable=False, unique=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(String(16), nullable=False, default="PENDING")
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False)
    shipping_address_id = Column(
        String(36), ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True
    )
    billing_address_id = Column(
        String(36), ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=DateUtils.now_utc)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=DateUtils.now_utc, onupdate=DateUtils.now_utc
    )

    __table_args__ = (
        CheckConstraint(enum_check("status", ORDER_STATUSES), name="ck_order_status"),
        CheckConstraint("total_amount >= 0", name="ck_order_total"),
    )

    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan"
    )
    payments = relationship(
        "Payment", back_populates="order", cascade="all, delete-orphan"
    )
    shipping_address = relationship("Address", foreign_keys=[shipping_address_id])
    billing_address = relationship("Address", foreign_keys=[billing_address_id])

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id} number={self.order_number!r} "
            f"status={self.status!r} total={self.total_amount}>"
        )


class OrderItem(Base):
    """
    A single line item within an order.

    product_name, sku and unit_price are snapshotted at checkout.
    """

    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id = Column(
        String(36), ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    product_name = Column(String(255), nullable=False)
    sku = Column(String(64), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_quantity"),
        CheckConstraint("unit_price >= 0", name="ck_order_item_unit_price"),
    )

    order = relationship("Order", back_populates="items")

    def __repr__(self) -> str:
        return (
            f"<OrderItem id={self.id} product_id={self.product_id} "
            f"qty={self.quantity}>"
        )

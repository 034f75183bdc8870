from sqlalchemy import (
    CheckConstraint, Column, DateTime, ForeignKey, Integer, String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from modishcarts.db import Base, new_id
from modishcarts.utils.date_utils import DateUtils


class CartItem(Base):
    """
    A product + quantity pair in a cart.

    A cart is not a row of its own: it is the set of items sharing an owner,
    either a registered user (user_id) or a guest browser session
    (session_id). Exactly one of the two is set. The unique constraints make
    (owner, product) a key, so adding a product that is already in the cart
    increments the existing row instead of creating a duplicate.

    quantity must be >= 1 -- removing an item means deleting the row.
    """

    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    session_id = Column(String(128), nullable=True, index=True)
    product_id = Column(
        String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=DateUtils.now_utc)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=DateUtils.now_utc, onupdate=DateUtils.now_utc
    )

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_cart_item_quantity"),
        CheckConstraint(
            "(user_id IS NULL) <> (session_id IS NULL)", name="ck_cart_item_owner"
        ),
        UniqueConstraint("user_id", "product_id", name="uq_cart_item_user_product"),
        UniqueConstraint("session_id", "product_id", name="uq_cart_item_session_product"),
    )

    user = relationship("User", back_populates="cart_items")
    product = relationship("Product")

    def __repr__(self) -> str:
        owner = f"user_id={self.user_id}" if self.user_id else f"session_id={self.session_id!r}"
        return f"<CartItem id={self.id} {owner} product_id={self.product_id} qty={self.quantity}>"

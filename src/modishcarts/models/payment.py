from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from modishcarts.db import Base, enum_check, new_id
from modishcarts.utils.date_utils import DateUtils

PAYMENT_METHODS = ("card", "paypal", "bank_transfer")
PAYMENT_STATUSES = ("PENDING", "COMPLETED", "FAILED", "REFUNDED")


class Payment(Base):
    """
    A payment attempt against an order.

    transaction_id is the reference returned by the payment provider.
    """

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    method = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False, default="PENDING")
    transaction_id = Column(String(64), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=DateUtils.now_utc)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payment_amount"),
        CheckConstraint(enum_check("status", PAYMENT_STATUSES), name="ck_payment_status"),
    )

    order = relationship("Order", back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment id={self.id} status={self.status!r} amount={self.amount}>"

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from modishcarts.core.exceptions import ConflictError, NotFoundError
from modishcarts.models import Order, Payment, User
from modishcarts.services.order_service import OrderService
from modishcarts.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


class MockPaymentProvider:
    """
    Stand-in payment gateway that approves every charge.

    Replace with a real provider client exposing the same charge() method.
    """

    name = "mock"

    def charge(self, amount: Decimal, currency: str, method: str, reference: str) -> str:
        transaction_id = f"txn_{uuid.uuid4().hex[:24]}"
        logger.info(f"[{self.name}] charged {amount} {currency} via {method} for {reference}: {transaction_id}")
        return transaction_id


class PaymentService:
    """
    Pays for pending orders.

    Business rules:
    - only PENDING orders can be paid; a paid order is never charged twice
    - a successful charge moves the order to PAID
    """

    def __init__(self, session: Session, provider=None, currency: str = "USD"):
        self.session = session
        self.provider = provider or MockPaymentProvider()
        self.currency = currency
        self.orders = OrderService(session)

    def create_payment(self, user: User, order_id: str, method: str) -> Payment:
        order = self.orders.get_order(user, order_id)
        if order.user_id != user.id:
            raise NotFoundError("Order")
        if order.status != "PENDING":
            logger.warning(f"Payment rejected for order {order.order_number} in status {order.status}")
            raise ConflictError(f"Order is not awaiting payment (status is {order.status})")

        transaction_id = self.provider.charge(
            order.total_amount, self.currency, method, order.order_number
        )
        payment = Payment(
            order_id=order.id,
            amount=order.total_amount,
            currency=self.currency,
            method=method,
            status="COMPLETED",
            transaction_id=transaction_id,
        )
        order.status = "PAID"
        self.session.add(payment)
        self.session.flush()

        logger.info(f"Order {order.order_number} paid with payment {payment.id}")
        return payment

    def get_payment(self, user: User, payment_id: str) -> Payment:
        payment = None
        if ValidationUtils.validate_uuid(payment_id):
            stmt = (
                select(Payment)
                .join(Order, Payment.order_id == Order.id)
                .where(Payment.id == payment_id)
            )
            if not user.is_admin:
                stmt = stmt.where(Order.user_id == user.id)
            payment = self.session.scalars(stmt).first()
        if payment is None:
            raise NotFoundError("Payment")
        return payment

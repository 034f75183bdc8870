# Re-export all models from a single entry point so the rest of the app
# can import cleanly:
#   from modishcarts.models import User, Product, CartItem
#
# Importing all models here also ensures they are registered with Base.metadata
# before any call to Base.metadata.create_all().

from modishcarts.models.cart import CartItem
from modishcarts.models.order import Address, Order, OrderItem
from modishcarts.models.payment import Payment
from modishcarts.models.product import (
    Category, Product, ProductImage, ProductVariant, Review,
)
from modishcarts.models.user import PasswordResetToken, User

__all__ = [
    "User",
    "PasswordResetToken",
    "Category",
    "Product",
    "ProductImage",
    "ProductVariant",
    "Review",
    "Address",
    "CartItem",
    "Order",
    "OrderItem",
    "Payment",
]

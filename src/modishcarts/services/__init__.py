from modishcarts.services.address_service import AddressService
from modishcarts.services.auth_service import AuthService
from modishcarts.services.cart_service import CartOwner, CartService
from modishcarts.services.order_service import OrderService
from modishcarts.services.payment_service import MockPaymentProvider, PaymentService
from modishcarts.services.product_service import ProductService

__all__ = [
    "AddressService",
    "AuthService",
    "CartOwner",
    "CartService",
    "OrderService",
    "MockPaymentProvider",
    "PaymentService",
    "ProductService",
]

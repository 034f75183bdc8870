from modishcarts.routes.addresses import addresses_bp
from modishcarts.routes.auth import auth_bp
from modishcarts.routes.cart import cart_bp
from modishcarts.routes.orders import orders_bp
from modishcarts.routes.payments import payments_bp
from modishcarts.routes.products import products_bp

__all__ = ["addresses_bp", "auth_bp", "cart_bp", "orders_bp", "payments_bp", "products_bp"]

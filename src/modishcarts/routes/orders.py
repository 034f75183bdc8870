from flask import Blueprint

from modishcarts.db import session_scope
from modishcarts.routes.schemas import CheckoutSchema, OrderSchema
from modishcarts.routes.utils import authenticate, load_json, success_response
from modishcarts.services import OrderService

orders_bp = Blueprint("orders", __name__)

_checkout_schema = CheckoutSchema()
_order_schema = OrderSchema()
_orders_schema = OrderSchema(many=True)


@orders_bp.route("", methods=["POST"])
@orders_bp.route("/", methods=["POST"])
def checkout():
    """Turn the caller's cart into a PENDING order."""
    with session_scope() as session:
        user = authenticate(session)
        data = load_json(_checkout_schema)
        order = OrderService(session).checkout(user, data)
        return success_response(data=_order_schema.dump(order), message="Order created", status=201)


@orders_bp.route("", methods=["GET"])
@orders_bp.route("/", methods=["GET"])
def list_orders():
    with session_scope() as session:
        user = authenticate(session)
        orders = OrderService(session).list_orders(user)
        return success_response(data=_orders_schema.dump(orders))


@orders_bp.route("/<order_id>", methods=["GET"])
def get_order(order_id):
    with session_scope() as session:
        user = authenticate(session)
        order = OrderService(session).get_order(user, order_id)
        return success_response(data=_order_schema.dump(order))


@orders_bp.route("/<order_id>/cancel", methods=["POST"])
def cancel_order(order_id):
    with session_scope() as session:
        user = authenticate(session)
        order = OrderService(session).cancel_order(user, order_id)
        return success_response(data=_order_schema.dump(order), message="Order cancelled")

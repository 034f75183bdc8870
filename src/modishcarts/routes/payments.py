from flask import Blueprint

from modishcarts.db import session_scope
from modishcarts.routes.schemas import PaymentCreateSchema, PaymentSchema
from modishcarts.routes.utils import authenticate, load_json, success_response
from modishcarts.services import PaymentService

payments_bp = Blueprint("payments", __name__)

_create_schema = PaymentCreateSchema()
_payment_schema = PaymentSchema()


@payments_bp.route("", methods=["POST"])
@payments_bp.route("/", methods=["POST"])
def create_payment():
    with session_scope() as session:
        user = authenticate(session)
        data = load_json(_create_schema)
        payment = PaymentService(session).create_payment(user, data["order_id"], data["method"])
        return success_response(data=_payment_schema.dump(payment), message="Payment completed", status=201)


@payments_bp.route("/<payment_id>", methods=["GET"])
def get_payment(payment_id):
    with session_scope() as session:
        user = authenticate(session)
        payment = PaymentService(session).get_payment(user, payment_id)
        return success_response(data=_payment_schema.dump(payment))

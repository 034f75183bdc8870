from typing import Optional

from flask import Blueprint, request

from modishcarts.core.exceptions import ValidationError
from modishcarts.db import session_scope
from modishcarts.routes.schemas import (
    SESSION_ID_MAX_LENGTH, CartAddSchema, CartItemSchema, CartMergeSchema, CartUpdateSchema,
)
from modishcarts.routes.utils import authenticate, get_config, load_json, success_response
from modishcarts.services import CartOwner, CartService

cart_bp = Blueprint("cart", __name__)

_add_schema = CartAddSchema()
_update_schema = CartUpdateSchema()
_merge_schema = CartMergeSchema()
_item_schema = CartItemSchema()
_items_schema = CartItemSchema(many=True)


def _session_id_from_request() -> Optional[str]:
    session_id = request.args.get("sessionId")
    if not session_id:
        body = request.get_json(silent=True)
        if isinstance(body, dict) and isinstance(body.get("sessionId"), str):
            session_id = body["sessionId"]
    session_id = session_id.strip() if session_id else None
    if session_id and len(session_id) > SESSION_ID_MAX_LENGTH:
        raise ValidationError(f"sessionId must be at most {SESSION_ID_MAX_LENGTH} characters")
    return session_id or None


def _resolve_owner(session, session_id: Optional[str] = None) -> CartOwner:
    """The authenticated user owns the cart; otherwise the guest session does."""
    user = authenticate(session, required=False)
    if user is not None:
        return CartOwner(user_id=user.id)
    session_id = session_id or _session_id_from_request()
    if not session_id:
        raise ValidationError("Either authentication or session ID is required")
    return CartOwner(session_id=session_id)


def _cart_service(session) -> CartService:
    return CartService(session, get_config().api.max_quantity_per_item)


def _cart_body(service: CartService, owner: CartOwner) -> dict:
    items = service.get_items(owner)
    return {"items": _items_schema.dump(items), "summary": service.summarize(items)}


@cart_bp.route("", methods=["GET"])
@cart_bp.route("/", methods=["GET"])
def get_cart():
    with session_scope() as session:
        owner = _resolve_owner(session)
        return success_response(**_cart_body(_cart_service(session), owner))


@cart_bp.route("", methods=["POST"])
@cart_bp.route("/", methods=["POST"])
def add_to_cart():
    """
    Add a product to the cart.

    201 when a new line is created, 200 when the quantity was summed into
    the line already holding that product.
    """
    with session_scope() as session:
        owner = _resolve_owner(session)
        data = load_json(_add_schema)
        item, created = _cart_service(session).add_item(owner, data["product_id"], data["quantity"])
        return success_response(status=201 if created else 200, **_item_schema.dump(item))


@cart_bp.route("/<item_id>", methods=["PUT"])
def update_cart_item(item_id):
    with session_scope() as session:
        owner = _resolve_owner(session)
        data = load_json(_update_schema)
        item = _cart_service(session).update_item(owner, item_id, data["quantity"])
        return success_response(**_item_schema.dump(item))


@cart_bp.route("/<item_id>", methods=["DELETE"])
def remove_cart_item(item_id):
    with session_scope() as session:
        owner = _resolve_owner(session)
        _cart_service(session).remove_item(owner, item_id)
    return success_response(message="Item removed from cart")


@cart_bp.route("", methods=["DELETE"])
@cart_bp.route("/", methods=["DELETE"])
def clear_cart():
    with session_scope() as session:
        owner = _resolve_owner(session)
        removed = _cart_service(session).clear(owner)
    return success_response(message="Cart cleared", removed=removed)


@cart_bp.route("/merge", methods=["POST"])
def merge_cart():
    """Fold a guest session's cart into the authenticated user's cart."""
    with session_scope() as session:
        user = authenticate(session)
        data = load_json(_merge_schema)
        service = _cart_service(session)
        result = service.merge_guest_cart(user.id, data["session_id"])
        return success_response(merge=result, **_cart_body(service, CartOwner(user_id=user.id)))

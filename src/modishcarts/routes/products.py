from flask import Blueprint, request

from modishcarts.db import session_scope
from modishcarts.routes.schemas import (
    ProductDetailSchema, ProductQuerySchema, ProductSchema, ProductWriteSchema,
    ReviewCreateSchema, ReviewSchema,
)
from modishcarts.routes.utils import (
    authenticate, load_json, load_schema, parse_id, require_admin, success_response,
)
from modishcarts.services import ProductService

products_bp = Blueprint("products", __name__)

_query_schema = ProductQuerySchema()
_write_schema = ProductWriteSchema()
_review_create_schema = ReviewCreateSchema()
_product_list_schema = ProductSchema(many=True)
_product_detail_schema = ProductDetailSchema()
_review_schema = ReviewSchema()


@products_bp.route("", methods=["GET"])
@products_bp.route("/", methods=["GET"])
def list_products():
    """
    List active products with optional filters:
    page, limit, categoryId, search, minPrice, maxPrice, featured, sort.
    """
    filters = load_schema(_query_schema, request.args.to_dict())
    with session_scope() as session:
        products, pagination = ProductService(session).list_products(filters)
        return success_response(data=_product_list_schema.dump(products), pagination=pagination)


@products_bp.route("/<product_id>", methods=["GET"])
def get_product(product_id):
    """
    Ids are UUIDs: a malformed id is a 400 "Invalid product ID format",
    while a well-formed id with no visible product is a 404.
    """
    parse_id(product_id, "product")
    with session_scope() as session:
        user = authenticate(session, required=False)
        include_inactive = bool(user and user.is_admin)
        product = ProductService(session).get_product(product_id, include_inactive=include_inactive)
        return success_response(**_product_detail_schema.dump(product))


@products_bp.route("", methods=["POST"])
@products_bp.route("/", methods=["POST"])
def create_product():
    with session_scope() as session:
        require_admin(authenticate(session))
        data = load_json(_write_schema)
        product = ProductService(session).create_product(data)
        return success_response(status=201, **_product_detail_schema.dump(product))


@products_bp.route("/<product_id>", methods=["PUT"])
def update_product(product_id):
    parse_id(product_id, "product")
    with session_scope() as session:
        require_admin(authenticate(session))
        data = load_json(_write_schema, partial=True)
        product = ProductService(session).update_product(product_id, data)
        return success_response(**_product_detail_schema.dump(product))


@products_bp.route("/<product_id>", methods=["DELETE"])
def delete_product(product_id):
    """Soft delete: the product is deactivated, order history keeps it."""
    parse_id(product_id, "product")
    with session_scope() as session:
        require_admin(authenticate(session))
        ProductService(session).deactivate_product(product_id)
    return success_response(message="Product deactivated")


@products_bp.route("/<product_id>/reviews", methods=["POST"])
def create_review(product_id):
    parse_id(product_id, "product")
    with session_scope() as session:
        user = authenticate(session)
        data = load_json(_review_create_schema)
        review = ProductService(session).add_review(product_id, user, data)
        return success_response(
            data=_review_schema.dump(review),
            message="Review submitted for approval",
            status=201,
        )

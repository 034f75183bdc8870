from flask import Blueprint

from modishcarts.db import session_scope
from modishcarts.routes.schemas import AddressSchema, AddressWriteSchema
from modishcarts.routes.utils import authenticate, load_json, success_response
from modishcarts.services import AddressService

addresses_bp = Blueprint("addresses", __name__)

_write_schema = AddressWriteSchema()
_address_schema = AddressSchema()
_addresses_schema = AddressSchema(many=True)


@addresses_bp.route("", methods=["GET"])
@addresses_bp.route("/", methods=["GET"])
def list_addresses():
    with session_scope() as session:
        user = authenticate(session)
        addresses = AddressService(session).list_addresses(user.id)
        return success_response(data=_addresses_schema.dump(addresses))


@addresses_bp.route("", methods=["POST"])
@addresses_bp.route("/", methods=["POST"])
def create_address():
    with session_scope() as session:
        user = authenticate(session)
        data = load_json(_write_schema)
        address = AddressService(session).create_address(user.id, data)
        return success_response(data=_address_schema.dump(address), status=201)


@addresses_bp.route("/<address_id>", methods=["PUT"])
def update_address(address_id):
    with session_scope() as session:
        user = authenticate(session)
        data = load_json(_write_schema, partial=True)
        address = AddressService(session).update_address(user.id, address_id, data)
        return success_response(data=_address_schema.dump(address))


@addresses_bp.route("/<address_id>", methods=["DELETE"])
def delete_address(address_id):
    with session_scope() as session:
        user = authenticate(session)
        AddressService(session).delete_address(user.id, address_id)
    return success_response(message="Address deleted")

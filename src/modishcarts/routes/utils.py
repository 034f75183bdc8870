from typing import Optional

from flask import current_app, jsonify, request
from marshmallow import Schema, ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from modishcarts.core.config import Config
from modishcarts.core.exceptions import ForbiddenError, UnauthorizedError, ValidationError
from modishcarts.core.security import decode_token, is_token_revoked
from modishcarts.models import User
from modishcarts.utils.date_utils import DateUtils
from modishcarts.utils.validators import ValidationUtils

CONFIG_KEY = "modishcarts.config"


def get_config() -> Config:
    return current_app.extensions[CONFIG_KEY]


def success_response(data=None, message: Optional[str] = None, status: int = 200, **extra):
    """
    Consistent success response envelope.

    Collections and order/payment resources go under "data"; keyword
    arguments are merged into the top level of the body.
    """
    response = {"success": True}
    if data is not None:
        response["data"] = data
    if message:
        response["message"] = message
    response.update(extra)
    response["timestamp"] = DateUtils.now_utc().isoformat()
    return jsonify(response), status


def _format_messages(messages, prefix: str = "") -> list:
    """Flatten marshmallow's nested error dict into 'field: message' strings."""
    if isinstance(messages, dict):
        out = []
        for key, value in messages.items():
            name = f"{prefix}.{key}" if prefix else str(key)
            out.extend(_format_messages(value, name))
        return out
    if isinstance(messages, list):
        out = []
        for value in messages:
            out.extend(_format_messages(value, prefix))
        return out
    return [f"{prefix}: {messages}" if prefix else str(messages)]


def load_schema(schema: Schema, data, partial: bool = False) -> dict:
    """Validate `data` with `schema`, turning marshmallow errors into a 400."""
    try:
        return schema.load(data, partial=partial)
    except SchemaValidationError as err:
        flat = _format_messages(err.messages)
        raise ValidationError(
            "; ".join(flat),
            field_errors=[{"field": m.split(":", 1)[0], "message": m.split(":", 1)[-1].strip()} for m in flat],
        )


def load_json(schema: Schema, partial: bool = False) -> dict:
    """Parse and validate the JSON request body."""
    data = request.get_json(silent=True)
    if data is None:
        if request.get_data(cache=True):
            raise ValidationError("Request body must be valid JSON")
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return load_schema(schema, data, partial=partial)


def parse_id(value: str, resource: str = "resource") -> str:
    if not ValidationUtils.validate_uuid(value):
        raise ValidationError(f"Invalid {resource} ID format")
    return value


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Authorization header must be 'Bearer <token>'")
    return token.strip()


def authenticate(session: Session, required: bool = True) -> Optional[User]:
    """
    Resolve the user behind the request's bearer token.

    Returns None when no Authorization header is present and `required` is
    False. A header that is present but invalid is always a 401.
    """
    token = _bearer_token()
    if token is None:
        if required:
            raise UnauthorizedError("Authentication required")
        return None

    claims = decode_token(token, get_config().security)
    user = session.get(User, claims.user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError("Invalid or expired token")
    if is_token_revoked(claims, user):
        raise UnauthorizedError("Token has been revoked")

    return user


def require_admin(user: User) -> User:
    if not user.is_admin:
        raise ForbiddenError("Administrator access required")
    return user

import logging

from flask import Blueprint

from modishcarts.db import session_scope
from modishcarts.routes.schemas import (
    ForgotPasswordSchema, LoginSchema, ProfileUpdateSchema, RefreshSchema,
    RegisterSchema, ResetPasswordSchema, UserSchema,
)
from modishcarts.routes.utils import authenticate, get_config, load_json, success_response
from modishcarts.services import AuthService, CartService
from modishcarts.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

_register_schema = RegisterSchema()
_login_schema = LoginSchema()
_refresh_schema = RefreshSchema()
_forgot_schema = ForgotPasswordSchema()
_reset_schema = ResetPasswordSchema()
_profile_schema = ProfileUpdateSchema()
_user_schema = UserSchema()


def _token_body(access, refresh) -> dict:
    return {
        "token": access.token,
        "refreshToken": refresh.token,
        "expiresAt": DateUtils.to_iso_string(access.expires_at),
    }


@auth_bp.route("/register", methods=["POST"])
def register():
    """Create a customer account."""
    data = load_json(_register_schema)
    with session_scope() as session:
        user = AuthService(session, get_config().security).register(data)
        return success_response(
            message="User registered successfully",
            status=201,
            user=_user_schema.dump(user),
        )


@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Exchange credentials for an access/refresh token pair.

    A guest `sessionId` in the body has its cart merged into the user's.
    """
    data = load_json(_login_schema)
    config = get_config()
    with session_scope() as session:
        user, access, refresh = AuthService(session, config.security).login(
            data["email"], data["password"]
        )
        if data.get("session_id"):
            CartService(session, config.api.max_quantity_per_item).merge_guest_cart(
                user.id, data["session_id"]
            )
        return success_response(user=_user_schema.dump(user), **_token_body(access, refresh))


@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    data = load_json(_refresh_schema)
    with session_scope() as session:
        _, access, new_refresh = AuthService(session, get_config().security).refresh(
            data["refresh_token"]
        )
        return success_response(**_token_body(access, new_refresh))


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """
    Issue a password reset token.

    The response is identical whether or not the email is registered. E-mail
    delivery is out of scope: the token is logged, and outside production it
    is also returned as `resetToken`.
    """
    data = load_json(_forgot_schema)
    config = get_config()
    with session_scope() as session:
        raw_token = AuthService(session, config.security).request_password_reset(data["email"])

    extra = {}
    if raw_token:
        logger.info(f"Password reset token generated for {data['email']}")
        if not config.is_production:
            extra["resetToken"] = raw_token
    return success_response(
        message="If the email is registered, a password reset token sent to it",
        **extra,
    )


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = load_json(_reset_schema)
    with session_scope() as session:
        AuthService(session, get_config().security).reset_password(data["token"], data["password"])
    return success_response(message="Password has been reset successfully")


@auth_bp.route("/profile", methods=["GET"])
def get_profile():
    with session_scope() as session:
        user = authenticate(session)
        return success_response(user=_user_schema.dump(user))


@auth_bp.route("/profile", methods=["PUT"])
def update_profile():
    with session_scope() as session:
        user = authenticate(session)
        data = load_json(_profile_schema)
        user = AuthService(session, get_config().security).update_profile(user, data)
        return success_response(user=_user_schema.dump(user))

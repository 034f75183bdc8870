import logging
import traceback
from typing import Optional

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from modishcarts.core.config import Config
from modishcarts.core.exceptions import BaseAPIException, DatabaseError, InternalServerError
from modishcarts.core.middleware import configure_logging, init_middleware
from modishcarts.db import EXTENSION_KEY, Database
from modishcarts.routes import (
    addresses_bp, auth_bp, cart_bp, orders_bp, payments_bp, products_bp,
)
from modishcarts.routes.utils import CONFIG_KEY
from modishcarts.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)

_HTTP_ERROR_MESSAGES = {
    404: "Route not found",
    405: "Method not allowed",
    413: "Request body too large",
}


def _error_body(message: str, code: str) -> dict:
    return {"success": False, "error": message, "code": code}


def create_app(config: Optional[Config] = None, database: Optional[Database] = None) -> Flask:
    """
    Application factory.

    Tests build isolated apps from an explicit Config; the server entry
    point builds one from the environment.
    """
    config = config or Config()
    configure_logging(config.app.log_level)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.app.max_content_length_mb * 1024 * 1024
    app.json.sort_keys = False
    app.extensions[CONFIG_KEY] = config
    app.extensions[EXTENSION_KEY] = database or Database(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
        pool_recycle=config.database.pool_recycle,
    )

    init_middleware(app, config)

    # ------------------------------------------------------------------ #
    # Blueprints                                                           #
    # ------------------------------------------------------------------ #
    app.register_blueprint(auth_bp,      url_prefix="/api/auth")
    app.register_blueprint(products_bp,  url_prefix="/api/products")
    app.register_blueprint(cart_bp,      url_prefix="/api/cart")
    app.register_blueprint(addresses_bp, url_prefix="/api/addresses")
    app.register_blueprint(orders_bp,    url_prefix="/api/orders")
    app.register_blueprint(payments_bp,  url_prefix="/api/payments")

    # ------------------------------------------------------------------ #
    # Error handlers: every error uses the same JSON envelope              #
    # ------------------------------------------------------------------ #
    @app.errorhandler(BaseAPIException)
    def api_error(e: BaseAPIException):
        if e.status_code >= 500:
            logger.error(f"{e.error_code}: {e.internal_message}")
        else:
            logger.info(f"{e.status_code} {e.error_code}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        message = _HTTP_ERROR_MESSAGES.get(e.code, e.description)
        code = e.name.upper().replace(" ", "_")
        return jsonify(_error_body(message, code)), e.code

    @app.errorhandler(SQLAlchemyError)
    def db_error(e: SQLAlchemyError):
        logger.error(f"Database error: {e}\n{traceback.format_exc()}")
        err = DatabaseError()
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(Exception)
    def internal_error(e: Exception):
        logger.error(f"Unhandled error: {e}\n{traceback.format_exc()}")
        err = InternalServerError()
        return jsonify(err.to_dict()), err.status_code

    # ------------------------------------------------------------------ #
    # Health check                                                         #
    # ------------------------------------------------------------------ #
    @app.get("/health")
    def health():
        """Liveness + readiness probe. Returns 503 if the database is unreachable."""
        timestamp = DateUtils.now_utc().isoformat()
        try:
            app.extensions[EXTENSION_KEY].ping()
        except SQLAlchemyError as exc:
            logger.error(f"Health check failed: {exc}")
            return jsonify({"status": "ERROR", "database": "unreachable", "timestamp": timestamp}), 503
        return jsonify({"status": "OK", "database": "reachable", "timestamp": timestamp}), 200

    return app


def main() -> None:
    config = Config()
    config.validate()
    app = create_app(config)
    app.extensions[EXTENSION_KEY].create_all()

    if config.is_testing:
        logger.info("ENVIRONMENT=test: not starting the HTTP server")
        return

    logger.info(f"ModishCarts API listening on {config.app.host}:{config.app.port} ({config.environment})")
    app.run(host=config.app.host, port=config.app.port, debug=config.app.debug)


if __name__ == "__main__":
    main()

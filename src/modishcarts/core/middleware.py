import logging
import time
import uuid

from flask import Flask, g, request
from flask_cors import CORS

from modishcarts.core.config import Config

access_logger = logging.getLogger("modishcarts.access")

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'self'",
}
HSTS_HEADER = "max-age=15552000; includeSubDomains"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def init_middleware(app: Flask, config: Config) -> None:
    """CORS, security headers, request ids and access logging."""
    CORS(app, origins=[config.app.cors_origin], supports_credentials=True)

    send_hsts = not (config.is_development or config.is_testing)

    @app.before_request
    def assign_request_id():
        # Short id for correlating log lines
        g.request_id = uuid.uuid4().hex[:8]
        g.request_started = time.perf_counter()

    @app.after_request
    def finalize_response(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        if send_hsts:
            response.headers.setdefault("Strict-Transport-Security", HSTS_HEADER)

        request_id = g.get("request_id")
        if request_id:
            response.headers["X-Request-Id"] = request_id

        started = g.get("request_started")
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        access_logger.info(
            f'{request.remote_addr} [{request_id}] "{request.method} {request.full_path.rstrip("?")}" '
            f'{response.status_code} {response.calculate_content_length() or "-"} '
            f'"{request.user_agent.string}" {elapsed_ms:.1f}ms'
        )
        return response

"""
Bee Fleet Proxy - Flask Application

Aggregation proxy between a fleet dashboard and the Bee Maps telematics API.
Holds the API key, forwards device/location/reward calls and adds
reverse-geocoded place names to device locations.
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from bee_fleet_proxy.config import Config
from bee_fleet_proxy.exceptions import FleetProxyError, UpstreamHttpError
from bee_fleet_proxy.extensions import init_fleet_proxy
from bee_fleet_proxy.routes import register_blueprints
from bee_fleet_proxy.utils.error_codes import ErrorCode, StructuredError

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Render every failure as a JSON object without internals."""

    @app.errorhandler(FleetProxyError)
    def handle_fleet_proxy_error(error: FleetProxyError):
        if error.error_code is not None:
            logger.warning(str(StructuredError(error.error_code, error.message, **error.details)))
        elif error.status_code >= 500 and not isinstance(error, UpstreamHttpError):
            logger.error(f"Request failed: {error}")
        return jsonify(error.to_response_body()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({'error': error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        structured = StructuredError(
            ErrorCode.E500_INTERNAL_SERVER_ERROR,
            "Unhandled error while processing request",
            exception=error,
        )
        logger.exception(str(structured))
        return jsonify({'error': 'Internal server error'}), 500


def create_app(overrides: Optional[dict] = None) -> Flask:
    """
    Build the Flask app and its service container.

    Args:
        overrides: Config values replacing those read from the environment
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    Config.validate(app.config)

    init_fleet_proxy(app)
    register_blueprints(app)
    register_error_handlers(app)
    return app


app = create_app()


if __name__ == '__main__':
    logger.info(f"[server] listening on http://localhost:{Config.FLASK_PORT}")
    if not app.extensions['fleet_proxy'].credentials.get():
        logger.info("[server] No API key configured yet. Add one via the Settings page.")
    app.run(host=Config.FLASK_HOST, port=Config.FLASK_PORT, debug=Config.DEBUG)

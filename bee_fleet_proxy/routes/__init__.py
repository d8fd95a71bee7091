"""
Routes module for the Bee fleet proxy Flask blueprints.

This module contains Flask blueprints that handle different areas of the API.
"""

from bee_fleet_proxy.routes.fleet import fleet_bp
from bee_fleet_proxy.routes.settings import settings_bp
from bee_fleet_proxy.routes.status import status_bp

__all__ = [
    "fleet_bp",
    "settings_bp",
    "status_bp",
]


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    app.register_blueprint(settings_bp, url_prefix="/api")
    app.register_blueprint(fleet_bp, url_prefix="/api")
    app.register_blueprint(status_bp, url_prefix="/api")

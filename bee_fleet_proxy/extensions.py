"""
Flask extensions for the Bee fleet proxy.

This module attaches the shared service container to the app and hands it
to blueprints, keeping route modules free of circular imports.
"""

from flask import Flask, current_app

from bee_fleet_proxy.services import FleetProxy

EXTENSION_KEY = 'fleet_proxy'


def init_fleet_proxy(app: Flask) -> FleetProxy:
    """Build the service container from the app config and register it."""
    fleet_proxy = FleetProxy(app.config)
    app.extensions[EXTENSION_KEY] = fleet_proxy
    return fleet_proxy


def get_fleet_proxy() -> FleetProxy:
    """Service container of the app handling the current request."""
    return current_app.extensions[EXTENSION_KEY]

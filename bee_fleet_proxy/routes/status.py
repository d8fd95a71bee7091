"""
Status routes for the Bee fleet proxy.
"""

from flask import Blueprint, jsonify, Response

from bee_fleet_proxy.extensions import get_fleet_proxy

status_bp = Blueprint('status', __name__)


@status_bp.route('/status', methods=['GET'])
def get_status() -> Response:
    """Proxy health: key configuration and geocode cache counters."""
    fleet_proxy = get_fleet_proxy()
    return jsonify({
        'status': 'online',
        'hasApiKey': bool(fleet_proxy.credentials.get()),
        'apiKeySource': fleet_proxy.credentials.source(),
        'geocodeCache': fleet_proxy.geocoder.stats(),
    })

"""
Settings routes for the Bee fleet proxy.

Reads and saves the Bee Maps API key. The key itself is never returned,
only a masked hint.
"""

import logging

from flask import Blueprint, Response, jsonify, request

from bee_fleet_proxy.exceptions import InvalidInputError
from bee_fleet_proxy.extensions import get_fleet_proxy
from bee_fleet_proxy.utils.error_codes import ErrorCode
from bee_fleet_proxy.utils.wide_events import WideEvent

logger = logging.getLogger(__name__)

settings_bp = Blueprint('settings', __name__)


@settings_bp.route('/settings', methods=['GET'])
def get_settings() -> Response:
    """Whether a key is configured, and its last four characters."""
    credentials = get_fleet_proxy().credentials
    return jsonify({
        'hasApiKey': bool(credentials.get()),
        'apiKeyHint': credentials.hint(),
    })


@settings_bp.route('/settings', methods=['POST'])
def save_settings() -> Response:
    """
    Save the Bee Maps API key.

    Request body:
        apiKey: Non-empty string; surrounding whitespace is trimmed
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInputError('apiKey is required', field='apiKey',
                                error_code=ErrorCode.E003_INVALID_DATA_TYPE)

    get_fleet_proxy().credentials.set(data.get('apiKey'))

    event = WideEvent('settings_saved')
    event.add_business_metric('api_key_saved', True)
    event.mark_success()
    event.emit()

    return jsonify({'ok': True})

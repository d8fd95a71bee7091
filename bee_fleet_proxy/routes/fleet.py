"""
Fleet routes for the Bee fleet proxy.

Proxies devices, locations and rewards from Bee Maps, plus the joined
fleet view and per-device reward history.
"""

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from bee_fleet_proxy.exceptions import InvalidInputError
from bee_fleet_proxy.extensions import get_fleet_proxy
from bee_fleet_proxy.utils.error_codes import ErrorCode
from bee_fleet_proxy.utils.time_utils import parse_date, reward_period_for

logger = logging.getLogger(__name__)

fleet_bp = Blueprint('fleet', __name__)


@fleet_bp.route('/devices', methods=['GET'])
def list_devices() -> Response:
    """All devices on the account, as returned by Bee Maps."""
    return jsonify(get_fleet_proxy().fleet.list_devices())


@fleet_bp.route('/location', methods=['GET'])
def get_location() -> Response:
    """
    Last known location of one device, with city/state/country added.

    Query params:
        deviceId: Bee Maps device id (required)
    """
    device_id = request.args.get('deviceId')
    return jsonify(get_fleet_proxy().locations.get_enriched_location(device_id))


@fleet_bp.route('/rewards', methods=['GET'])
def get_rewards() -> Response:
    """
    Reward records for every device for one week.

    Query params:
        rewardPeriod: Monday starting the week, YYYY-MM-DD (required)
    """
    reward_period = request.args.get('rewardPeriod')
    return jsonify(get_fleet_proxy().fleet.get_rewards(reward_period))


@fleet_bp.route('/locations', methods=['GET'])
def get_locations() -> Response:
    """
    Enriched locations for several devices, fetched in parallel.

    Query params:
        deviceIds: Comma-separated device ids (required)

    Devices whose lookup failed map to null.
    """
    raw_ids = request.args.get('deviceIds', '')
    device_ids = [d.strip() for d in raw_ids.split(',') if d.strip()]
    if not device_ids:
        raise InvalidInputError('deviceIds query param required', field='deviceIds')

    locations = get_fleet_proxy().locations.get_enriched_locations(device_ids)
    return jsonify({'locations': locations})


@fleet_bp.route('/fleet', methods=['GET'])
def get_fleet() -> Response:
    """
    One row per device joining location and weekly rewards.

    Query params:
        rewardPeriod: Monday of the week to report (default: current week)
        date: Any date in the week to report, used when rewardPeriod is absent
    """
    reward_period = request.args.get('rewardPeriod')
    date_param = request.args.get('date')
    if not reward_period and date_param:
        day = parse_date(date_param)
        if day is None:
            raise InvalidInputError('date must be a valid date', field='date',
                                    error_code=ErrorCode.E003_INVALID_DATA_TYPE)
        reward_period = reward_period_for(day)

    return jsonify(get_fleet_proxy().fleet.fleet_overview(reward_period))


@fleet_bp.route('/devices/<device_id>/rewards', methods=['GET'])
def get_device_reward_history(device_id: str) -> Response:
    """
    Weekly rewards for one device over recent weeks, newest first.

    Query params:
        weeks: Number of weeks (default 12, max 52)
    """
    max_weeks = current_app.config['REWARD_HISTORY_MAX_WEEKS']
    try:
        weeks = int(request.args.get('weeks', current_app.config['REWARD_HISTORY_DEFAULT_WEEKS']))
    except (ValueError, TypeError):
        raise InvalidInputError('weeks must be an integer', field='weeks',
                                error_code=ErrorCode.E003_INVALID_DATA_TYPE)
    if not 1 <= weeks <= max_weeks:
        raise InvalidInputError(f'weeks must be between 1 and {max_weeks}', field='weeks',
                                error_code=ErrorCode.E003_INVALID_DATA_TYPE)

    return jsonify(get_fleet_proxy().fleet.reward_history(device_id, weeks))

"""Utility modules for the Bee fleet proxy."""

from .geocoding import GeocodeCache, Place, coordinate_key, parse_place
from .time_utils import (
    utc_now,
    week_start,
    reward_period_for,
    current_reward_period,
    recent_reward_periods,
    parse_date,
)

__all__ = [
    'GeocodeCache',
    'Place',
    'coordinate_key',
    'parse_place',
    'utc_now',
    'week_start',
    'reward_period_for',
    'current_reward_period',
    'recent_reward_periods',
    'parse_date',
]

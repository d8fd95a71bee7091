"""
Services module for the Bee fleet proxy.

This module contains service classes that encapsulate proxy logic
separate from the Flask route handlers.
"""

import os

from bee_fleet_proxy.services.credential_store import CredentialStore
from bee_fleet_proxy.services.fleet_service import FleetService
from bee_fleet_proxy.services.location_service import LocationService, run_fanout
from bee_fleet_proxy.services.upstream_proxy import UpstreamProxy
from bee_fleet_proxy.utils.geocoding import GeocodeCache


class FleetProxy:
    """
    Service container built once per app from its config.

    Owns the single geocode cache and credential store, so every request
    handler shares them through ``current_app`` instead of module globals.
    """

    def __init__(self, settings: dict):
        self.credentials = CredentialStore(
            os.path.join(settings['DATA_DIR'], settings['SETTINGS_FILENAME']),
            env_var=settings['BEE_API_KEY_ENV_VAR'],
        )
        self.geocoder = GeocodeCache(
            url=settings['GEOCODER_URL'],
            user_agent=settings['GEOCODER_USER_AGENT'],
            timeout=settings['GEOCODER_TIMEOUT_SECONDS'],
            max_entries=settings['GEOCODE_CACHE_MAX_ENTRIES'],
        )
        self.proxy = UpstreamProxy(
            self.credentials,
            base_url=settings['BEE_API_BASE_URL'],
            timeout=settings['UPSTREAM_TIMEOUT_SECONDS'],
            max_attempts=settings['UPSTREAM_MAX_ATTEMPTS'],
        )
        self.locations = LocationService(
            self.proxy,
            self.geocoder,
            max_workers=settings['LOCATION_FANOUT_MAX_WORKERS'],
        )
        self.fleet = FleetService(
            self.proxy,
            self.locations,
            max_workers=settings['LOCATION_FANOUT_MAX_WORKERS'],
        )


__all__ = [
    'FleetProxy',
    'CredentialStore',
    'FleetService',
    'LocationService',
    'UpstreamProxy',
    'GeocodeCache',
    'run_fanout',
]

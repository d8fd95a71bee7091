import os

from bee_fleet_proxy.exceptions import ConfigurationError

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


class Config:
    """Application configuration from environment variables."""

    # Bee Maps upstream
    BEE_API_BASE_URL = os.environ.get('BEE_API_BASE_URL', 'https://api.trybeekeeper.ai/v1')
    BEE_API_KEY_ENV_VAR = 'BEE_API_KEY'
    UPSTREAM_TIMEOUT_SECONDS = float(os.environ.get('UPSTREAM_TIMEOUT_SECONDS', 10))
    UPSTREAM_MAX_ATTEMPTS = int(os.environ.get('UPSTREAM_MAX_ATTEMPTS', 1))  # 1 = single attempt

    # Credential persistence
    DATA_DIR = os.environ.get('DATA_DIR', os.path.join(PACKAGE_DIR, 'data'))
    SETTINGS_FILENAME = 'settings.json'

    # Reverse geocoding (OpenStreetMap Nominatim)
    GEOCODER_URL = os.environ.get('GEOCODER_URL', 'https://nominatim.openstreetmap.org/reverse')
    GEOCODER_USER_AGENT = os.environ.get('GEOCODER_USER_AGENT', 'BeeFleetRewards/1.0')
    GEOCODER_TIMEOUT_SECONDS = float(os.environ.get('GEOCODER_TIMEOUT_SECONDS', 10))
    GEOCODE_CACHE_MAX_ENTRIES = int(os.environ.get('GEOCODE_CACHE_MAX_ENTRIES', 0))  # 0 = unbounded

    # Per-device fan-out
    LOCATION_FANOUT_MAX_WORKERS = int(os.environ.get('LOCATION_FANOUT_MAX_WORKERS', 0))  # 0 = one per device
    REWARD_HISTORY_DEFAULT_WEEKS = 12
    REWARD_HISTORY_MAX_WEEKS = 52

    # Flask
    FLASK_ENV = os.environ.get('FLASK_ENV', 'production')
    DEBUG = FLASK_ENV == 'development'
    FLASK_HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    FLASK_PORT = int(os.environ.get('FLASK_PORT', 3001))

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    @classmethod
    def validate(cls, settings: dict) -> None:
        """Reject settings the proxy cannot run with."""
        for key in ('UPSTREAM_TIMEOUT_SECONDS', 'GEOCODER_TIMEOUT_SECONDS'):
            if settings.get(key) is None or settings[key] <= 0:
                raise ConfigurationError(f'{key} must be positive', config_key=key)
        if settings.get('UPSTREAM_MAX_ATTEMPTS', 0) < 1:
            raise ConfigurationError('UPSTREAM_MAX_ATTEMPTS must be at least 1',
                                     config_key='UPSTREAM_MAX_ATTEMPTS')
        for key in ('GEOCODE_CACHE_MAX_ENTRIES', 'LOCATION_FANOUT_MAX_WORKERS'):
            if settings.get(key, 0) < 0:
                raise ConfigurationError(f'{key} must not be negative', config_key=key)
        if not settings.get('BEE_API_BASE_URL'):
            raise ConfigurationError('BEE_API_BASE_URL is required', config_key='BEE_API_BASE_URL')

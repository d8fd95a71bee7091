"""
Pytest fixtures for Bee fleet proxy tests.
"""

import os
import sys

import pytest

# Add repo root to path so the package imports without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bee_fleet_proxy.app import create_app  # noqa: E402

BEE_BASE_URL = 'https://bee.test/v1'
GEOCODER_URL = 'https://geocoder.test/reverse'
TEST_API_KEY = 'test-key-1234abcd'


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Create application for testing with its own settings directory."""
    monkeypatch.delenv('BEE_API_KEY', raising=False)
    flask_app = create_app({
        'TESTING': True,
        'DATA_DIR': str(tmp_path / 'data'),
        'BEE_API_BASE_URL': BEE_BASE_URL,
        'GEOCODER_URL': GEOCODER_URL,
        'UPSTREAM_TIMEOUT_SECONDS': 2,
        'GEOCODER_TIMEOUT_SECONDS': 2,
    })
    yield flask_app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def fleet_proxy(app):
    """Service container of the test app."""
    return app.extensions['fleet_proxy']


@pytest.fixture
def api_key(fleet_proxy):
    """Store a Bee Maps API key for the test app."""
    fleet_proxy.credentials.set(TEST_API_KEY)
    return TEST_API_KEY


@pytest.fixture
def sample_devices():
    """Bee Maps /devices payload."""
    return {
        'devices': [
            {
                'id': 'dev-1',
                'name': ' Alice ',
                'description': 'Van 1',
                'serialNumber': 'SN0001',
                'vehiclePlate': 'ABC123',
            },
            {
                'id': 'dev-2',
                'name': 'Bob',
                'description': '',
                'serialNumber': 'SN0002',
                'vehiclePlate': '',
            },
        ]
    }


@pytest.fixture
def sample_rewards():
    """Bee Maps /hivemapperRewards payload for one week."""
    return {
        'devicesWithRewards': [
            {
                'device': {'id': 'dev-1'},
                'rewardAmountHoney': 125.5,
                'rewardMountRating': 4,
            },
        ]
    }


@pytest.fixture
def queens_address():
    """Nominatim reverse payload for a point in Queens, NY."""
    return {
        'address': {
            'city': 'Queens',
            'state': 'New York',
            'country_code': 'us',
        }
    }

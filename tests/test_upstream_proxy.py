"""
Tests for the Bee Maps upstream proxy.

Uses `responses` to mock HTTP requests without hitting the real API.
"""

from unittest.mock import patch

import pytest
import requests
import responses

from bee_fleet_proxy.exceptions import (
    UnauthorizedError,
    UpstreamHttpError,
    UpstreamProtocolError,
    UpstreamUnreachableError,
)
from bee_fleet_proxy.services.credential_store import CredentialStore
from bee_fleet_proxy.services.upstream_proxy import UpstreamProxy

BASE_URL = 'https://bee.test/v1'


@pytest.fixture
def credentials(tmp_path, monkeypatch):
    monkeypatch.delenv('BEE_API_KEY', raising=False)
    return CredentialStore(str(tmp_path / 'settings.json'))


@pytest.fixture
def proxy(credentials):
    credentials.set('secret-key-5678')
    return UpstreamProxy(credentials, base_url=BASE_URL, timeout=2)


class TestMissingCredential:
    """Tests for calls made without an API key."""

    def test_raises_unauthorized_without_network_call(self, credentials):
        proxy = UpstreamProxy(credentials, base_url=BASE_URL)

        with patch('bee_fleet_proxy.services.upstream_proxy.requests.get') as mock_get:
            with pytest.raises(UnauthorizedError) as exc_info:
                proxy.forward('/devices')

        mock_get.assert_not_called()
        assert exc_info.value.status_code == 401
        assert 'API key not configured' in exc_info.value.message

    @responses.activate
    def test_environment_key_is_used(self, credentials, monkeypatch):
        monkeypatch.setenv('BEE_API_KEY', 'env-key')
        responses.add(responses.GET, f'{BASE_URL}/devices', json={'devices': []})

        UpstreamProxy(credentials, base_url=BASE_URL).forward('/devices')

        assert responses.calls[0].request.headers['Authorization'] == 'Bearer env-key'


class TestForward:
    """Tests for successful forwarding."""

    @responses.activate
    def test_returns_json_unchanged(self, proxy):
        payload = {'devices': [{'id': 'dev-1', 'extra': {'nested': True}}]}
        responses.add(responses.GET, f'{BASE_URL}/devices', json=payload)

        assert proxy.forward('/devices', {}) == payload

    @responses.activate
    def test_sends_bearer_token_and_query(self, proxy):
        responses.add(responses.GET, f'{BASE_URL}/location', json={'lat': 1, 'lon': 2})

        proxy.forward('/location', {'deviceId': 'dev-1'})

        request = responses.calls[0].request
        assert request.headers['Authorization'] == 'Bearer secret-key-5678'
        assert request.url == f'{BASE_URL}/location?deviceId=dev-1'

    def test_passes_configured_timeout(self, proxy):
        with patch('bee_fleet_proxy.services.upstream_proxy.requests.get') as mock_get:
            mock_get.return_value.status_code = 200
            mock_get.return_value.ok = True
            mock_get.return_value.headers = {'Content-Type': 'application/json'}
            mock_get.return_value.json.return_value = []
            mock_get.return_value.content = b'[]'

            proxy.forward('/devices')

        assert mock_get.call_args.kwargs['timeout'] == 2

    def test_url_joining(self, credentials):
        proxy = UpstreamProxy(credentials, base_url=f'{BASE_URL}/')
        assert proxy.url_for('/devices') == f'{BASE_URL}/devices'
        assert proxy.url_for('devices') == f'{BASE_URL}/devices'

    @responses.activate
    def test_json_with_charset_accepted(self, proxy):
        responses.add(
            responses.GET, f'{BASE_URL}/devices',
            body='{"devices": []}', content_type='application/json; charset=utf-8',
        )
        assert proxy.forward('/devices') == {'devices': []}


class TestUpstreamFailures:
    """Tests for translation of upstream failures."""

    @responses.activate
    def test_http_error_passes_status_and_body(self, proxy):
        responses.add(responses.GET, f'{BASE_URL}/devices', json={'message': 'boom'}, status=500)

        with pytest.raises(UpstreamHttpError) as exc_info:
            proxy.forward('/devices')

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == {'message': 'boom'}
        assert exc_info.value.to_response_body() == {'message': 'boom'}

    @responses.activate
    def test_html_response_is_protocol_error(self, proxy):
        responses.add(
            responses.GET, f'{BASE_URL}/devices',
            body='<html>Bad Gateway</html>', status=502, content_type='text/html',
        )

        with pytest.raises(UpstreamProtocolError) as exc_info:
            proxy.forward('/devices')

        assert exc_info.value.status_code == 502
        assert exc_info.value.content_type == 'text/html'
        assert exc_info.value.upstream_status == 502

    @responses.activate
    def test_html_with_success_status_is_protocol_error(self, proxy):
        """Content type is checked before the status."""
        responses.add(responses.GET, f'{BASE_URL}/devices', body='<html></html>', status=200,
                      content_type='text/html')

        with pytest.raises(UpstreamProtocolError):
            proxy.forward('/devices')

    @responses.activate
    def test_malformed_json_is_protocol_error(self, proxy):
        responses.add(responses.GET, f'{BASE_URL}/devices', body='{broken',
                      content_type='application/json')

        with pytest.raises(UpstreamProtocolError):
            proxy.forward('/devices')

    @responses.activate
    def test_connection_error_is_unreachable(self, proxy):
        responses.add(responses.GET, f'{BASE_URL}/devices',
                      body=requests.exceptions.ConnectionError('refused'))

        with pytest.raises(UpstreamUnreachableError) as exc_info:
            proxy.forward('/devices')

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == 'Failed to reach Bee Maps API'

    @responses.activate
    def test_timeout_is_unreachable(self, proxy):
        responses.add(responses.GET, f'{BASE_URL}/devices', body=requests.exceptions.Timeout())

        with pytest.raises(UpstreamUnreachableError):
            proxy.forward('/devices')

    @responses.activate
    def test_single_attempt_by_default(self, proxy):
        responses.add(responses.GET, f'{BASE_URL}/devices',
                      body=requests.exceptions.ConnectionError('refused'))

        with pytest.raises(UpstreamUnreachableError):
            proxy.forward('/devices')

        assert len(responses.calls) == 1


class TestAttemptPolicy:
    """Tests for the configurable attempt count."""

    @responses.activate
    def test_network_failure_reattempted(self, credentials):
        credentials.set('key')
        proxy = UpstreamProxy(credentials, base_url=BASE_URL, max_attempts=3)
        responses.add(responses.GET, f'{BASE_URL}/devices',
                      body=requests.exceptions.ConnectionError('refused'))
        responses.add(responses.GET, f'{BASE_URL}/devices', json={'devices': []})

        assert proxy.forward('/devices') == {'devices': []}
        assert len(responses.calls) == 2

    @responses.activate
    def test_http_error_never_reattempted(self, credentials):
        credentials.set('key')
        proxy = UpstreamProxy(credentials, base_url=BASE_URL, max_attempts=3)
        responses.add(responses.GET, f'{BASE_URL}/devices', json={'message': 'nope'}, status=403)

        with pytest.raises(UpstreamHttpError):
            proxy.forward('/devices')

        assert len(responses.calls) == 1

    def test_attempts_floor_is_one(self, credentials):
        assert UpstreamProxy(credentials, base_url=BASE_URL, max_attempts=0).max_attempts == 1

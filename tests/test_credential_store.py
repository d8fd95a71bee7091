"""Tests for the Bee Maps API key store."""

import json
import os

import pytest

from bee_fleet_proxy.exceptions import InvalidInputError, SettingsStorageError
from bee_fleet_proxy.services.credential_store import CredentialStore
from bee_fleet_proxy.utils.error_codes import ErrorCode


@pytest.fixture
def settings_file(tmp_path):
    return str(tmp_path / 'data' / 'settings.json')


@pytest.fixture
def store(settings_file, monkeypatch):
    monkeypatch.delenv('BEE_API_KEY', raising=False)
    return CredentialStore(settings_file)


class TestGet:
    """Tests for key resolution."""

    def test_empty_when_nothing_configured(self, store):
        """No stored key and no environment key resolves to empty string."""
        assert store.get() == ''
        assert store.source() is None

    def test_environment_fallback(self, store, monkeypatch):
        """Environment key is used when nothing is stored."""
        monkeypatch.setenv('BEE_API_KEY', 'env-key-9999')
        assert store.get() == 'env-key-9999'
        assert store.source() == 'environment'

    def test_stored_value_wins_over_environment(self, store, monkeypatch):
        """Saved key takes precedence over the environment key."""
        monkeypatch.setenv('BEE_API_KEY', 'env-key-9999')
        store.set('stored-key-1111')
        assert store.get() == 'stored-key-1111'
        assert store.source() == 'settings_file'

    def test_custom_env_var(self, settings_file, monkeypatch):
        """Fallback variable name is configurable."""
        monkeypatch.setenv('OTHER_KEY', 'other')
        assert CredentialStore(settings_file, env_var='OTHER_KEY').get() == 'other'

    def test_corrupt_settings_file_treated_as_empty(self, store, settings_file):
        """Invalid JSON in the settings file is ignored on read."""
        os.makedirs(os.path.dirname(settings_file))
        with open(settings_file, 'w') as f:
            f.write('{not json')
        assert store.get() == ''

    def test_non_object_settings_file_treated_as_empty(self, store, settings_file):
        """A JSON list in the settings file is ignored."""
        os.makedirs(os.path.dirname(settings_file))
        with open(settings_file, 'w') as f:
            json.dump(['abc'], f)
        assert store.get() == ''

    def test_non_string_stored_key_ignored(self, store, settings_file):
        """A non-string apiKey value does not count as configured."""
        os.makedirs(os.path.dirname(settings_file))
        with open(settings_file, 'w') as f:
            json.dump({'apiKey': 12345}, f)
        assert store.get() == ''


class TestSet:
    """Tests for saving the key."""

    @pytest.mark.parametrize('value', ['', '   ', 123, None, ['key']])
    def test_rejects_invalid_values(self, store, value):
        """Blank and non-string values are rejected."""
        with pytest.raises(InvalidInputError) as exc_info:
            store.set(value)
        assert exc_info.value.field == 'apiKey'
        assert store.get() == ''

    @pytest.mark.parametrize('value, code', [
        ('   ', ErrorCode.E002_MISSING_REQUIRED_FIELD),
        (123, ErrorCode.E003_INVALID_DATA_TYPE),
    ])
    def test_rejection_error_codes(self, store, value, code):
        """Blank keys are missing; non-strings have the wrong type."""
        with pytest.raises(InvalidInputError) as exc_info:
            store.set(value)
        assert exc_info.value.error_code == code

    def test_trims_whitespace(self, store):
        """Surrounding whitespace is stripped before saving."""
        store.set(' abc ')
        assert store.get() == 'abc'

    def test_creates_directory_lazily(self, store, settings_file):
        """Data directory does not exist until the first save."""
        assert not os.path.exists(os.path.dirname(settings_file))
        store.set('first-key')
        assert os.path.exists(settings_file)

    def test_persists_across_instances(self, store, settings_file):
        """A new store reading the same file sees the saved key."""
        store.set('durable-key')
        assert CredentialStore(settings_file).get() == 'durable-key'

    def test_overwrites_previous_value(self, store, settings_file):
        """Saving again replaces the old key."""
        store.set('old-key')
        store.set('new-key')
        with open(settings_file) as f:
            assert json.load(f) == {'apiKey': 'new-key'}

    def test_preserves_other_settings(self, store, settings_file):
        """Unrelated keys in the settings file survive a save."""
        os.makedirs(os.path.dirname(settings_file))
        with open(settings_file, 'w') as f:
            json.dump({'theme': 'dark'}, f)
        store.set('key')
        with open(settings_file) as f:
            assert json.load(f) == {'theme': 'dark', 'apiKey': 'key'}

    def test_leaves_no_temp_files(self, store, settings_file):
        """Only settings.json remains after a save."""
        store.set('key')
        assert os.listdir(os.path.dirname(settings_file)) == ['settings.json']

    def test_write_failure_raises_storage_error(self, tmp_path):
        """A data directory that cannot be created raises SettingsStorageError."""
        blocker = tmp_path / 'blocker'
        blocker.write_text('not a directory')
        store = CredentialStore(str(blocker / 'settings.json'))

        with pytest.raises(SettingsStorageError):
            store.set('key')


class TestHint:
    """Tests for the masked key hint."""

    def test_empty_when_unset(self, store):
        assert store.hint() == ''

    def test_last_four_characters(self, store):
        """Only the last four characters are shown."""
        store.set('sk-live-abcdef1234')
        assert store.hint() == '...1234'

    def test_short_key_shown_whole(self, store):
        """A key shorter than four characters is shown in full after the marker."""
        store.set(' abc ')
        assert store.hint() == '...abc'

    def test_hint_from_environment(self, store, monkeypatch):
        monkeypatch.setenv('BEE_API_KEY', 'env-key-9876')
        assert store.hint() == '...9876'

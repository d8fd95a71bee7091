"""
Credential store for the Bee Maps API key.

Persists a single key in a JSON settings file and resolves the active key
through an ordered chain: the saved value first, then the environment.
"""

import json
import logging
import os
import tempfile
from typing import Callable, List, Optional, Tuple

from bee_fleet_proxy.exceptions import InvalidInputError, SettingsStorageError
from bee_fleet_proxy.utils.error_codes import ErrorCode, StructuredError

logger = logging.getLogger(__name__)

API_KEY_FIELD = 'apiKey'
HINT_PREFIX = '...'
HINT_LENGTH = 4


class CredentialStore:
    """Single-credential store backed by ``<data_dir>/settings.json``."""

    def __init__(self, settings_file: str, env_var: str = 'BEE_API_KEY'):
        self.settings_file = settings_file
        self.env_var = env_var
        self._sources: List[Tuple[str, Callable[[], str]]] = [
            ('settings_file', self._stored_value),
            ('environment', self._environment_value),
        ]

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _resolve(self) -> Tuple[Optional[str], str]:
        for name, reader in self._sources:
            value = reader()
            if value:
                return name, value
        return None, ''

    def get(self) -> str:
        """Active API key, or empty string when no source provides one."""
        return self._resolve()[1]

    def source(self) -> Optional[str]:
        """Name of the source that supplied the active key."""
        return self._resolve()[0]

    def hint(self) -> str:
        """Masked form of the active key: the last four characters only."""
        key = self.get()
        if not key:
            return ''
        return f"{HINT_PREFIX}{key[-HINT_LENGTH:]}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def set(self, value) -> None:
        """
        Validate, trim and persist a new API key, replacing any prior one.

        Raises:
            InvalidInputError: value is not a string or is blank
            SettingsStorageError: the settings file could not be written
        """
        if not isinstance(value, str):
            raise InvalidInputError('apiKey is required', field=API_KEY_FIELD,
                                    error_code=ErrorCode.E003_INVALID_DATA_TYPE)
        if not value.strip():
            raise InvalidInputError('apiKey is required', field=API_KEY_FIELD)

        settings = self._load()
        settings[API_KEY_FIELD] = value.strip()
        self._save(settings)
        logger.info("API key updated")

    def _stored_value(self) -> str:
        value = self._load().get(API_KEY_FIELD)
        return value if isinstance(value, str) else ''

    def _environment_value(self) -> str:
        return os.environ.get(self.env_var, '')

    def _load(self) -> dict:
        if not os.path.exists(self.settings_file):
            return {}
        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            error = StructuredError(
                ErrorCode.E200_SETTINGS_READ_FAILED,
                "Settings file unreadable, treating as empty",
                exception=e,
                path=self.settings_file,
            )
            logger.warning(str(error))
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Settings file {self.settings_file} does not hold an object, ignoring")
            return {}
        return data

    def _save(self, settings: dict) -> None:
        directory = os.path.dirname(self.settings_file) or '.'
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.settings-', suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(settings, f, indent=2)
            os.replace(tmp_path, self.settings_file)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            error = StructuredError(
                ErrorCode.E201_SETTINGS_WRITE_FAILED,
                "Could not write settings file",
                exception=e,
                path=self.settings_file,
            )
            logger.error(str(error))
            raise SettingsStorageError(path=self.settings_file) from e

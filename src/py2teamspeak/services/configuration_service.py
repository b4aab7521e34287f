"""
Settings lookup for py2teamspeak.

The client reads its configuration through a simple key -> value lookup
with defaults. Values come from an optional YAML file and from overrides
(usually command-line arguments).

YAML files may be flat::

    teamspeak-apikey: ABCD-1234
    teamspeak-update-name: true

or grouped under a ``teamspeak`` section::

    teamspeak:
      apikey: ABCD-1234
      update-name: true
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from py2teamspeak.core.errors import ConfigurationError, ErrorCodes, wrap_external_error

logger = logging.getLogger(__name__)

APIKEY = "teamspeak-apikey"
PUSH_NUMBER = "teamspeak-carnumber"
UPDATE_NAME = "teamspeak-update-name"
HOST = "teamspeak-host"

DEFAULTS: Dict[str, Any] = {
    APIKEY: "",
    PUSH_NUMBER: True,
    UPDATE_NAME: False,
    HOST: "localhost",
}

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0", ""}

SECTION = "teamspeak"


class Settings:
    """
    Key/value settings with defaults.

    Example:
        >>> settings = Settings({'teamspeak-apikey': 'ABCD'})
        >>> settings.get_str(APIKEY)
        'ABCD'
        >>> settings.get_bool(PUSH_NUMBER)
        True
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = {}
        if values:
            self.update(values)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Settings":
        """
        Load settings from a YAML file.

        Raises:
            ConfigurationError: If the file is missing or not a mapping
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(
                f"Settings file not found: {path}",
                error_code=ErrorCodes.CONFIG_NOT_FOUND,
                context={'path': str(path)},
                suggestions=[
                    "Check the --config path",
                    "Run without --config to use the default settings"
                ]
            )

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in settings file: {path}",
                error_code=ErrorCodes.CONFIG_INVALID,
                cause=e
            )
        except OSError as e:
            raise wrap_external_error(e, f"Cannot read settings file: {path}",
                                      ConfigurationError, path=str(path))

        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Settings file must contain a mapping: {path}",
                error_code=ErrorCodes.CONFIG_INVALID
            )

        logger.info(f"Loaded settings from {path}")
        return cls(cls._flatten(data))

    @staticmethod
    def _flatten(data: Mapping[str, Any]) -> Dict[str, Any]:
        flat = {k: v for k, v in data.items() if k != SECTION}
        section = data.get(SECTION)
        if isinstance(section, Mapping):
            for key, value in section.items():
                flat[f"{SECTION}-{key}"] = value
        return flat

    def update(self, values: Mapping[str, Any]) -> None:
        """Override settings; None values are ignored."""
        for key, value in values.items():
            if value is not None:
                self._values[str(key)] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Raw value for ``key``, falling back to ``default`` then DEFAULTS."""
        if key in self._values:
            return self._values[key]
        if default is not None:
            return default
        return DEFAULTS.get(key)

    def get_str(self, key: str, default: Optional[str] = None) -> str:
        value = self.get(key, default)
        return "" if value is None else str(value)

    def get_bool(self, key: str, default: Optional[bool] = None) -> bool:
        """
        Boolean value for ``key``.

        Accepts YAML booleans and the strings true/false, yes/no, on/off, 1/0.
        Unrecognised values log a warning and fall back to the default.
        """
        fallback = default if default is not None else bool(DEFAULTS.get(key, False))
        value = self.get(key, default)

        if value is None:
            return fallback
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False

        logger.warning(f"Setting {key}={value!r} is not a boolean, using {fallback}")
        return fallback

    def as_dict(self) -> Dict[str, Any]:
        """Effective settings (defaults merged with overrides)."""
        merged = dict(DEFAULTS)
        merged.update(self._values)
        return merged

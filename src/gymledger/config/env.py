"""Environment variable handling for configuration."""

import os
from typing import Any

from gymledger.config.utils import as_bool


class EnvConfig:
    """Environment variable configuration."""

    # Mapping of environment variables to configuration paths
    ENV_MAPPING = {
        'GYMLEDGER_STORE_URL': ('store', 'url'),
        'GYMLEDGER_STORE_API_KEY': ('store', 'api_key'),
        'GYMLEDGER_STORE_SCHEMA': ('store', 'schema'),
        'GYMLEDGER_STORE_TIMEOUT': ('store', 'read_timeout'),
        'GYMLEDGER_CACHE_PATH': ('cache', 'path'),
        'GYMLEDGER_CACHE_DISABLED': ('cache', 'disabled'),
        'GYMLEDGER_LOG_LEVEL': ('logging', 'level'),
        'GYMLEDGER_LOG_FILE': ('logging', 'file'),
    }

    @staticmethod
    def get_env_value(env_var: str, default: Any | None = None) -> Any | None:
        """Get value from environment variable with default."""
        return os.getenv(env_var, default)

    @staticmethod
    def _set_nested_value(config: dict[str, Any], path: tuple, value: Any) -> None:
        """Set value in nested dictionary using path tuple."""
        current = config
        for part in path[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]
        current[path[-1]] = value

    @classmethod
    def update_config_from_env(cls, config: dict[str, Any]) -> None:
        """Update configuration dictionary with environment variables.

        Args:
            config: Configuration dictionary to update
        """
        for env_var, path in cls.ENV_MAPPING.items():
            value = cls.get_env_value(env_var)
            if value is not None:
                cls._set_nested_value(config, path, value)

        # Disabling is spelled as a flag in the environment
        cache = config.get('cache', {})
        if 'disabled' in cache:
            cache['enabled'] = not as_bool(cache.pop('disabled'))

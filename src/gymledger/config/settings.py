"""Configuration settings for the gym ledger application."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from gymledger.config.env import EnvConfig
from gymledger.config.types import AppConfig
from gymledger.config.types import CacheConfig
from gymledger.config.types import ErrorAggregationConfig
from gymledger.config.types import GlobalConfig
from gymledger.config.types import LoggingConfig
from gymledger.config.types import MembershipConfig
from gymledger.config.types import StoreConfig
from gymledger.config.utils import as_bool
from gymledger.config.utils import as_float
from gymledger.config.utils import as_int
from gymledger.config.utils import deep_merge
from gymledger.config.utils import resolve_path
from gymledger.config.utils import section
from gymledger.exceptions import ConfigError


CONFIG_FILE_NAME = "config.yaml"

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigurationManager:
    """Loads configuration from defaults, ``config.yaml`` and the environment.

    One manager is created by the entry point and the resulting
    :class:`AppConfig` is handed to :func:`gymledger.app.create_app`.
    """

    def __init__(self, config_dir: str | None = None):
        self._config: AppConfig | None = None
        self._config_path: Path = _get_config_path(config_dir)

    @property
    def config(self) -> AppConfig:
        """Get the current configuration, loading it if necessary."""
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load_config() first.")
        return self._config

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load_config(self) -> AppConfig:
        """Load configuration once and cache it on the manager."""
        if self._config is not None:
            return self._config

        raw = _load_global_config(self._config_path)
        self._config = build_app_config(raw, config_dir=str(self._config_path))
        return self._config

    def reload_config(self) -> AppConfig:
        """Force reload configuration."""
        self._config = None
        return self.load_config()

def _get_config_path(config_dir: str | None = None) -> Path:
    """Get configuration directory path."""
    return resolve_path(
        config_dir or os.getenv("GYMLEDGER_CONFIG_DIR", os.path.join("~", ".config", "gymledger"))
    )

def _load_global_config(config_path: Path) -> GlobalConfig:
    """Load raw configuration from YAML file and environment."""
    global_config: dict[str, Any] = {}

    config_file = config_path / CONFIG_FILE_NAME
    if config_file.exists():
        try:
            with open(config_file, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}", {"file": str(config_file)}) from e
        if not isinstance(loaded_config, dict):
            raise ConfigError(f"Configuration root must be a mapping: {config_file}", {"file": str(config_file)})
        global_config = deep_merge(global_config, loaded_config)
    else:
        logging.getLogger(__name__).debug(f"No configuration file at {config_file}, using defaults")

    EnvConfig.update_config_from_env(global_config)
    return global_config  # type: ignore[return-value]

def build_app_config(raw: GlobalConfig | dict[str, Any], config_dir: str | None = None) -> AppConfig:
    """Convert a raw configuration mapping into :class:`AppConfig`.

    Raises:
        ConfigError: If a value has the wrong type or an unknown log level
    """
    store_raw = section(raw, 'store')
    store_defaults = StoreConfig()
    store = StoreConfig(
        url=str(store_raw.get('url', store_defaults.url) or '').rstrip('/'),
        api_key=str(store_raw.get('api_key', store_defaults.api_key) or ''),
        schema=str(store_raw.get('schema', store_defaults.schema)),
        connect_timeout=as_float('store', 'connect_timeout', store_raw.get('connect_timeout', store_defaults.connect_timeout)),
        read_timeout=as_float('store', 'read_timeout', store_raw.get('read_timeout', store_defaults.read_timeout)),
    )

    cache_raw = section(raw, 'cache')
    cache_defaults = CacheConfig()
    cache = CacheConfig(
        enabled=as_bool(cache_raw.get('enabled', cache_defaults.enabled)),
        path=str(resolve_path(cache_raw.get('path', cache_defaults.path), base_dir=config_dir)),
        key_prefix=str(cache_raw.get('key_prefix', cache_defaults.key_prefix)),
    )

    logging_raw = section(raw, 'logging')
    level = str(logging_raw.get('level', LoggingConfig.level)).upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigError(f"Unknown log level: {level}", {"section": "logging", "key": "level"})
    log_config = LoggingConfig(
        level=level,
        file=logging_raw.get('file'),
        json=as_bool(logging_raw.get('json', False)),
        max_size_mb=as_int('logging', 'max_size_mb', logging_raw.get('max_size_mb', LoggingConfig.max_size_mb)),
        backup_count=as_int('logging', 'backup_count', logging_raw.get('backup_count', LoggingConfig.backup_count)),
    )

    aggregation_raw = section(raw, 'error_aggregation')
    aggregation_defaults = ErrorAggregationConfig()
    aggregation = ErrorAggregationConfig(
        enabled=as_bool(aggregation_raw.get('enabled', aggregation_defaults.enabled)),
        report_interval=as_int('error_aggregation', 'report_interval', aggregation_raw.get('report_interval', aggregation_defaults.report_interval)),
        error_threshold=as_int('error_aggregation', 'error_threshold', aggregation_raw.get('error_threshold', aggregation_defaults.error_threshold)),
        time_threshold=as_int('error_aggregation', 'time_threshold', aggregation_raw.get('time_threshold', aggregation_defaults.time_threshold)),
    )

    membership_raw = section(raw, 'membership')
    window = as_int('membership', 'expiring_window_days', membership_raw.get('expiring_window_days', MembershipConfig.expiring_window_days))
    if window < 0:
        raise ConfigError("membership.expiring_window_days must not be negative", {"section": "membership"})

    return AppConfig(
        store=store,
        cache=cache,
        logging=log_config,
        error_aggregation=aggregation,
        membership=MembershipConfig(expiring_window_days=window),
        config_dir=config_dir,
    )

def load_config(config_dir: str | None = None) -> AppConfig:
    """Load configuration using a fresh ConfigurationManager."""
    return ConfigurationManager(config_dir).load_config()

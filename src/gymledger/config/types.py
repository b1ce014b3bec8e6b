"""Configuration type definitions."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, TypedDict

class StoreSection(TypedDict, total=False):
    """Raw ``store`` section as read from YAML/environment."""
    url: str
    api_key: str
    schema: str
    connect_timeout: float
    read_timeout: float

class CacheSection(TypedDict, total=False):
    """Raw ``cache`` section."""
    enabled: bool
    path: str
    key_prefix: str

class LoggingSection(TypedDict, total=False):
    """Raw ``logging`` section."""
    level: str
    file: Optional[str]
    json: bool
    max_size_mb: int
    backup_count: int

class GlobalConfig(TypedDict, total=False):
    """Raw configuration structure before conversion."""
    store: StoreSection
    cache: CacheSection
    logging: LoggingSection
    error_aggregation: Dict[str, Any]
    membership: Dict[str, Any]

@dataclass
class StoreConfig:
    """Primary store connection settings."""
    url: str = ""
    api_key: str = ""
    schema: str = "public"
    connect_timeout: float = 7.0
    read_timeout: float = 20.0

    @property
    def timeout(self) -> Tuple[float, float]:
        """Timeout tuple in the form requests expects."""
        return (self.connect_timeout, self.read_timeout)

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key)

@dataclass
class CacheConfig:
    """Fallback cache settings."""
    enabled: bool = True
    path: str = "~/.cache/gymledger/fallback.db"
    key_prefix: str = "warriors_gym"

@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "WARNING"
    file: Optional[str] = None
    json: bool = False
    max_size_mb: int = 10
    backup_count: int = 5

@dataclass
class ErrorAggregationConfig:
    """Error aggregation configuration."""
    enabled: bool = True
    report_interval: int = 3600
    error_threshold: int = 5
    time_threshold: int = 300

@dataclass
class MembershipConfig:
    """Membership derivation settings."""
    expiring_window_days: int = 30

@dataclass
class AppConfig:
    """Application configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    error_aggregation: ErrorAggregationConfig = field(default_factory=ErrorAggregationConfig)
    membership: MembershipConfig = field(default_factory=MembershipConfig)
    config_dir: Optional[str] = None

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return getattr(self, key, default)

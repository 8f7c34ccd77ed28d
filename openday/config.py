"""
Application Configuration Module
Handles all configuration management for the Open Day planner
"""

import os
import logging
from typing import Optional
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

WALKING_SPEED_CHOICES = ('slow', 'normal', 'fast')
DEFAULT_CATALOG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'data', 'sample_events.json'
)


@dataclass
class ServerConfig:
    """Server configuration"""
    port: int
    host: str
    environment: str  # 'development', 'staging', 'production'
    debug: bool
    log_level: str


@dataclass
class TravelDefaults:
    """Default travel settings used when a request does not supply any"""
    walking_speed: str
    buffer_minutes: int
    min_warning_minutes: int


@dataclass
class EngineConfig:
    """Engine wiring"""
    catalog_path: str
    alternatives_limit: int
    recommendation_limit: int
    default_priority: int
    event_timezone: str  # IANA name; event times are wall-clock times in this zone


@dataclass
class FeatureConfig:
    """Feature flags"""
    enable_rate_limiting: bool
    enable_metrics: bool
    rate_limit: str


def _int_env(name: str, default: str, minimum: Optional[int] = None) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", details={'variable': name})
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}", details={'variable': name})
    return value


def _timezone_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"{name} must be a known time zone, got {value!r}", details={'variable': name})
    return value


def _bool_env(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes')


class Config:
    """Main configuration class"""

    def __init__(self):
        """Initialize configuration from environment"""
        load_dotenv()
        self._load_configs()

    def _load_configs(self):
        """Load all configurations"""
        env = os.getenv('ENVIRONMENT', 'development')

        self.server = ServerConfig(
            port=_int_env('PORT', '8000', minimum=1),
            host=os.getenv('HOST', '0.0.0.0'),
            environment=env,
            debug=env != 'production',
            log_level=os.getenv('LOG_LEVEL', 'INFO' if env == 'production' else 'DEBUG').upper()
        )

        walking_speed = os.getenv('WALKING_SPEED', 'normal').lower()
        if walking_speed not in WALKING_SPEED_CHOICES:
            raise ConfigurationError(
                f"WALKING_SPEED must be one of {WALKING_SPEED_CHOICES}, got {walking_speed!r}",
                details={'variable': 'WALKING_SPEED'}
            )

        self.travel = TravelDefaults(
            walking_speed=walking_speed,
            buffer_minutes=_int_env('BUFFER_MINUTES', '5', minimum=0),
            min_warning_minutes=_int_env('MIN_WARNING_MINUTES', '3', minimum=0)
        )

        self.engine = EngineConfig(
            catalog_path=os.getenv('CATALOG_PATH', DEFAULT_CATALOG_PATH),
            alternatives_limit=_int_env('ALTERNATIVES_LIMIT', '5', minimum=1),
            recommendation_limit=_int_env('RECOMMENDATION_LIMIT', '20', minimum=1),
            default_priority=_int_env('DEFAULT_PRIORITY', '1', minimum=1),
            event_timezone=_timezone_env('EVENT_TIMEZONE', 'Europe/Berlin')
        )

        self.features = FeatureConfig(
            enable_rate_limiting=_bool_env('ENABLE_RATE_LIMITING', 'true'),
            enable_metrics=_bool_env('ENABLE_METRICS', 'true'),
            rate_limit=os.getenv('RATE_LIMIT', '100/minute')
        )

    def log_config(self):
        """Log configuration"""
        logger.info(f"Environment: {self.server.environment}")
        logger.info(f"Server: {self.server.host}:{self.server.port}")
        logger.info(f"Catalog: {self.engine.catalog_path}")
        logger.info(f"Event time zone: {self.engine.event_timezone}")
        logger.info(
            f"Travel defaults: speed={self.travel.walking_speed}, "
            f"buffer={self.travel.buffer_minutes}min, warning={self.travel.min_warning_minutes}min"
        )
        logger.debug(f"Features: RateLimit={self.features.enable_rate_limiting}, Metrics={self.features.enable_metrics}")


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get global configuration instance"""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the cached configuration so the next get_config() re-reads the environment"""
    global _config
    _config = None

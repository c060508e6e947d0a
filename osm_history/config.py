"""
Configuration settings for the OSM way history extractor
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class APIConfig:
    """OSM API endpoint and request settings"""
    # OSM API 0.6 (history endpoints are read-only, no auth needed)
    base_url: str = "https://api.openstreetmap.org/api/0.6"
    allowed_hosts: List[str] = field(default_factory=lambda: ["openstreetmap.org"])

    # Request settings
    request_timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0
    min_request_interval: float = 0.5  # Shared across all endpoints

    # User agent for API requests
    user_agent: str = "OSM-History-Extractor/1.0"


@dataclass
class CacheConfig:
    """Response cache settings"""
    cache_dir: Optional[str] = None  # None disables caching
    expiry_days: float = 7.0


@dataclass
class LoggingConfig:
    """Log output settings"""
    level: str = "INFO"
    max_entries: int = 1000
    log_file: Optional[str] = None


@dataclass
class ExportConfig:
    """File export settings"""
    gpx_version: str = "1.1"
    gpx_creator: str = "OSM-history-extractor"
    kml_version: str = "2.2"


@dataclass
class HistoryConfig:
    """Top-level configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    exports: ExportConfig = field(default_factory=ExportConfig)

    # Output settings
    output_dir: str = "output"


def get_config() -> HistoryConfig:
    """Get a default configuration"""
    return HistoryConfig()


def validate_config(config: HistoryConfig) -> None:
    """
    Validate that all required configuration values are set.
    Raises ValueError if any required value is missing or invalid.
    """
    errors = []

    if config.api is None:
        errors.append("api configuration is required but not set")
    else:
        if not config.api.base_url:
            errors.append("api.base_url is required but not set")
        elif not config.api.base_url.startswith("https://"):
            errors.append(f"api.base_url must use https, got {config.api.base_url}")
        if not config.api.allowed_hosts:
            errors.append("api.allowed_hosts must list at least one host")
        if config.api.request_timeout <= 0:
            errors.append(f"api.request_timeout must be positive, got {config.api.request_timeout}")
        if config.api.max_retries < 1:
            errors.append(f"api.max_retries must be at least 1, got {config.api.max_retries}")
        if config.api.retry_delay < 0:
            errors.append(f"api.retry_delay must not be negative, got {config.api.retry_delay}")
        if config.api.min_request_interval < 0:
            errors.append(
                f"api.min_request_interval must not be negative, got {config.api.min_request_interval}"
            )

    if config.cache is None:
        errors.append("cache configuration is required but not set")
    elif config.cache.expiry_days <= 0:
        errors.append(f"cache.expiry_days must be positive, got {config.cache.expiry_days}")

    if config.logging is not None and config.logging.max_entries < 1:
        errors.append(f"logging.max_entries must be at least 1, got {config.logging.max_entries}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)

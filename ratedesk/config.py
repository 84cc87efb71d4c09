"""Configuration management for RateDesk."""
import os
from pathlib import Path
from typing import Any, Dict, Optional
import yaml
from dotenv import load_dotenv
from ratedesk.utils.errors import ConfigurationError
from ratedesk.utils.logging import setup_logging
import logging

logger = logging.getLogger(__name__)

API_KEY_ENV = "BEACON_API_KEY"


class Config:
    """Application configuration."""

    def __init__(self, config_path: str = "config.yaml", configure_logging: bool = True):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML configuration file
            configure_logging: Apply the ``logging`` section on load
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load(configure_logging)

    def _load(self, configure_logging: bool) -> None:
        """Load configuration from YAML and environment."""
        load_dotenv()

        if not self.config_path.exists():
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            try:
                self._config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}")

        if not self._config:
            raise ConfigurationError(f"Empty configuration file: {self.config_path}")

        self._validate()

        if configure_logging:
            log_config = self._config.get('logging', {}) or {}
            setup_logging(
                level=os.getenv('LOG_LEVEL', log_config.get('level', 'INFO')),
                log_file=log_config.get('file'),
                format_type=log_config.get('format', 'json'),
                enabled=log_config.get('enabled', True)
            )

        logger.info("Configuration loaded successfully")

    def _validate(self) -> None:
        """Validate required configuration sections."""
        if not isinstance(self._config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self.config_path}")

        for section in ('app', 'api'):
            if section not in self._config:
                raise ConfigurationError(f"Missing required config section: {section}")

        if 'base_url' not in (self._config['api'] or {}):
            raise ConfigurationError("Missing api.base_url in config")

        try:
            float(self.get('api.timeout', 10))
            int(self.get('converter.debounce_ms', 500))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid numeric config value: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-separated key.

        Args:
            key: Dot-separated key (e.g., "api.base_url")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self._config

        for k in key.split('.'):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def get_env(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get environment variable."""
        return os.getenv(key, default)

    @property
    def api_base_url(self) -> str:
        return self.get('api.base_url').rstrip('/')

    @property
    def api_timeout(self) -> float:
        """Request timeout in seconds."""
        return float(self.get('api.timeout', 10))

    @property
    def api_key(self) -> str:
        return self.get_env(API_KEY_ENV, '') or ''

    @property
    def default_base_currency(self) -> str:
        return str(self.get('sync.default_base', 'USD')).upper()

    @property
    def debounce_seconds(self) -> float:
        """Conversion debounce in seconds, from ``converter.debounce_ms``."""
        return int(self.get('converter.debounce_ms', 500)) / 1000.0

"""
Configuration loader for the BuildFlow estimation back end.

Loads settings from buildflow_config.yaml and provides typed access
to all configuration sections.
"""
import os
from decimal import Decimal
from pathlib import Path
from typing import Optional
from functools import lru_cache

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).parent / "buildflow_config.yaml"

# Environment override for the database URL (deployments, tests)
DATABASE_URL_ENV = "BUILDFLOW_DATABASE_URL"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class BuildFlowConfig:
    """
    Configuration manager for BuildFlow.

    Loads YAML configuration and provides typed access to all sections.
    Use get_config() to obtain the singleton instance.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: dict = {}
        self._load()

    def _load(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            raise ConfigurationError(f"Config file not found: {self._config_path}")

        try:
            with open(self._config_path, 'r') as f:
                self._config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")

        if not isinstance(self._config, dict):
            raise ConfigurationError("Config file must contain a YAML mapping")

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load()
        get_config.cache_clear()

    @property
    def version(self) -> str:
        """Configuration file version."""
        return self._config.get("version", "unknown")

    # =========================================================================
    # Database
    # =========================================================================

    @property
    def database(self) -> dict:
        """Database configuration."""
        return self._config.get("database", {})

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL; the BUILDFLOW_DATABASE_URL environment variable wins."""
        return os.environ.get(DATABASE_URL_ENV) or self.database.get("url", "sqlite:///./buildflow.db")

    @property
    def database_echo(self) -> bool:
        return bool(self.database.get("echo", False))

    # =========================================================================
    # Logging
    # =========================================================================

    @property
    def logging(self) -> dict:
        """Logging configuration."""
        return self._config.get("logging", {})

    @property
    def log_level(self) -> str:
        return str(self.logging.get("level", "INFO")).upper()

    @property
    def log_format(self) -> str:
        return self.logging.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # =========================================================================
    # Pagination
    # =========================================================================

    @property
    def pagination(self) -> dict:
        """Pagination configuration."""
        return self._config.get("pagination", {})

    @property
    def default_page_size(self) -> int:
        return int(self.pagination.get("default_page_size", 25))

    @property
    def max_page_size(self) -> int:
        return int(self.pagination.get("max_page_size", 200))

    def get_pagination_settings(self, resource: str) -> dict:
        """
        Get sorting settings for a paginated resource.

        Args:
            resource: One of 'estimates', 'projects', 'participants', 'quotes', 'work_items'

        Returns:
            Dict with sort_fields, default_sort and default_direction
        """
        resources = self.pagination.get("resources", {})
        return resources.get(resource, {
            "sort_fields": ["id"],
            "default_sort": "id",
            "default_direction": "asc"
        })

    # =========================================================================
    # Estimates
    # =========================================================================

    @property
    def estimates(self) -> dict:
        """Estimate computation configuration."""
        return self._config.get("estimates", {})

    @property
    def default_overall_multiplier(self) -> float:
        return float(self.estimates.get("default_overall_multiplier", 1.0))

    @property
    def default_line_multiplier(self) -> float:
        return float(self.estimates.get("default_line_multiplier", 1.0))

    @property
    def default_strategy(self) -> str:
        return self.estimates.get("default_strategy", "AVERAGE")

    @property
    def default_unit_cost(self) -> Decimal:
        """Unit cost used when a work item has no applicable quote."""
        return Decimal(str(self.estimates.get("default_unit_cost", "0.00")))

    # =========================================================================
    # Quotes
    # =========================================================================

    @property
    def quotes(self) -> dict:
        """Quote configuration."""
        return self._config.get("quotes", {})

    @property
    def default_currency(self) -> str:
        return self.quotes.get("default_currency", "USD")

    # =========================================================================
    # Raw Access
    # =========================================================================

    def get(self, key: str, default=None):
        """Get a top-level configuration value."""
        return self._config.get(key, default)

    def get_nested(self, *keys: str, default=None):
        """
        Get a nested configuration value.

        Example: config.get_nested("estimates", "default_unit_cost")
        """
        value = self._config
        for key in keys:
            if not isinstance(value, dict):
                return default
            value = value.get(key)
            if value is None:
                return default
        return value


@lru_cache(maxsize=1)
def get_config() -> BuildFlowConfig:
    """
    Get the singleton configuration instance.

    Returns:
        BuildFlowConfig instance (cached)
    """
    return BuildFlowConfig()


def reload_config() -> BuildFlowConfig:
    """
    Force reload of configuration from disk.

    Returns:
        Fresh BuildFlowConfig instance
    """
    get_config.cache_clear()
    return get_config()

"""
Configuration Management for the periodical archive

Provides centralized configuration for the archive API, catalog category,
access links and viewer settings. Supports both environment variables and
configuration files.
"""

import copy
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional, List

from .utils.config_loader import load_config_with_fallback, merge_configs
from .utils.url_validation import validate_api_base_url, is_token_transport_safe
from .utils.validation import validate_positive_int

logger = logging.getLogger(__name__)


# =============================================================================
# Validation Result Type
# =============================================================================

@dataclass
class ValidationResult:
    """Result of configuration validation.

    Attributes:
        valid: True if configuration passed all validation checks
        errors: List of validation error messages (empty if valid)
        warnings: List of non-fatal validation warnings
    """
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        """Allow ValidationResult to be used in boolean context."""
        return self.valid

    def raise_if_invalid(self) -> None:
        """Raise ValueError if validation failed.

        Raises:
            ValueError: If validation failed, with all errors as message
        """
        if not self.valid:
            raise ValueError("; ".join(self.errors))


# Default configuration
DEFAULT_CONFIG = {
    "api": {
        "base_url": "http://localhost:5000/",
        "catalog_path": "api/pdf-uploads",
        "access_path": "api/pdf-uploads/access/{document_id}",
        "timeout": 30
    },
    "archive": {
        "category": "Archive",
        "max_workers": 4
    },
    "auth": {
        "client_token": None
    },
    "links": {
        "login_url": "/login-client",
        "subscribe_url": "/subscriptions"
    },
    "viewer": {
        "open_in_browser": True
    }
}

# Environment variable -> config path
ENV_MAPPINGS = {
    "ARCHIVE_API_BASE_URL": ["api", "base_url"],
    "ARCHIVE_API_TIMEOUT": ["api", "timeout"],
    "ARCHIVE_CATEGORY": ["archive", "category"],
    "ARCHIVE_MAX_WORKERS": ["archive", "max_workers"],
    "ARCHIVE_CLIENT_TOKEN": ["auth", "client_token"],
}

INTEGER_KEYS = frozenset(["timeout", "max_workers"])


class ArchiveConfig:
    """Configuration manager for the periodical archive.

    The configuration resolution priority is:
    1. Environment variable overrides
    2. JSON configuration file (~/.periodical_archive/config.json or
       ./periodical_archive_config.json)
    3. Hardcoded DEFAULT_CONFIG

    Example:
        config = get_config()
        base_url = config.get("api.base_url")
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize the configuration manager.

        Args:
            config_path: Optional JSON file to try before the standard locations
        """
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        self._config_path = config_path
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file, then apply environment overrides."""
        file_config = load_config_with_fallback(self._config_path)
        if file_config:
            self._merge_config(file_config)

        self._load_env_overrides()

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        """Recursively merge new configuration into existing config."""
        self._config = merge_configs(self._config, new_config)

    def _load_env_overrides(self) -> None:
        """Load configuration overrides from environment variables."""
        for env_var, config_path in ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if not value:
                continue

            current = self._config
            for key in config_path[:-1]:
                current = current.setdefault(key, {})

            if config_path[-1] in INTEGER_KEYS:
                try:
                    value = int(value)
                except ValueError:
                    logger.warning(f"Invalid integer value for {env_var}: {value}")
                    continue

            current[config_path[-1]] = value
            if env_var == "ARCHIVE_CLIENT_TOKEN":
                logger.info(f"Environment override: {env_var} = <redacted>")
            else:
                logger.info(f"Environment override: {env_var} = {value}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Path to the configuration key (e.g., "api.base_url")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        current = self._config
        try:
            for key in key_path.split('.'):
                current = current[key]
            return current
        except (KeyError, TypeError):
            return default

    def set(self, key_path: str, value: Any) -> None:
        """
        Set a configuration value using dot notation.

        Args:
            key_path: Path to the configuration key (e.g., "api.timeout")
            value: Value to set
        """
        keys = key_path.split('.')
        current = self._config

        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value
        logger.debug(f"Config set: {key_path}")

    def get_api_config(self) -> Dict[str, Any]:
        """Get archive API configuration."""
        return self._config["api"]

    def get_archive_config(self) -> Dict[str, Any]:
        """Get archive browsing configuration."""
        return self._config["archive"]

    def get_links_config(self) -> Dict[str, Any]:
        """Get login/subscribe link configuration."""
        return self._config["links"]

    def get_client_token(self) -> Optional[str]:
        """Get the configured bearer token, or None for anonymous access."""
        return self.get("auth.client_token") or None

    def as_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the current configuration."""
        return copy.deepcopy(self._config)

    def validate(self) -> ValidationResult:
        """Validate the current configuration."""
        return validate_api_config(self._config)


def validate_api_config(config: Dict[str, Any]) -> ValidationResult:
    """Validate archive API settings.

    Args:
        config: Full configuration dictionary

    Returns:
        ValidationResult with errors for unusable values and warnings for
        risky ones (bearer token over plain http)
    """
    errors: List[str] = []
    warnings: List[str] = []

    api = config.get("api", {})
    is_valid, normalized_url, error = validate_api_base_url(api.get("base_url"))
    if not is_valid:
        errors.append(error)

    if not validate_positive_int(api.get("timeout"), min_value=1, max_value=600):
        errors.append(f"api.timeout must be between 1 and 600 seconds, got {api.get('timeout')!r}")

    max_workers = config.get("archive", {}).get("max_workers")
    if not validate_positive_int(max_workers, min_value=1, max_value=32):
        errors.append(f"archive.max_workers must be between 1 and 32, got {max_workers!r}")

    category = config.get("archive", {}).get("category")
    if category is not None and not isinstance(category, str):
        errors.append(f"archive.category must be a string, got {category!r}")

    if "{document_id}" not in str(api.get("access_path", "")):
        errors.append("api.access_path must contain a {document_id} placeholder")

    token = config.get("auth", {}).get("client_token")
    if token and normalized_url and not is_token_transport_safe(normalized_url):
        warnings.append(
            f"Bearer token will be sent over plain http to {normalized_url}; use https"
        )

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


# Global configuration instance
_config_instance: Optional[ArchiveConfig] = None


def get_config() -> ArchiveConfig:
    """Get the global configuration instance."""
    global _config_instance
    if _config_instance is None:
        _config_instance = ArchiveConfig()
    return _config_instance


def reload_config(config_path: Optional[Path] = None) -> ArchiveConfig:
    """Reload configuration from files and environment."""
    global _config_instance
    _config_instance = ArchiveConfig(config_path)
    return _config_instance

"""
Configuration Module
Loads settings from the YAML config file, .env and environment variables.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from loguru import logger

from .exceptions import ConfigError
from .store import DEFAULT_TIMEOUT


DEFAULT_CONFIG_PATH = 'config/config.yaml'
DEFAULT_MAX_FILE_SIZE_MB = 10


@dataclass(frozen=True)
class ImportSettings:
    store_url: str = ''
    store_api_key: str = ''
    store_timeout: float = DEFAULT_TIMEOUT
    owner_id: str = ''
    throttle_seconds: float = 0.0
    max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB
    log_level: str = 'INFO'
    log_file: str = ''

    @property
    def max_file_size(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)

    def require_store(self) -> None:
        """Raise ConfigError unless the store URL and API key are set."""
        missing = []
        if not self.store_url:
            missing.append('store.base_url (CATALOG_STORE_URL)')
        if not self.store_api_key:
            missing.append('store.api_key (CATALOG_STORE_API_KEY)')
        if missing:
            raise ConfigError(f"Missing store settings: {', '.join(missing)}")


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"Config file not found: {config_path}")
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse config file {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping of sections")
    return config


def resolve_settings(
    config: Dict[str, Any],
    overrides: Optional[Dict[str, Any]] = None,
    load_env_file: bool = True
) -> ImportSettings:
    """
    Build settings from config values, environment variables and overrides.

    Priority: overrides (command line) > environment variables > config file.

    Args:
        config: Parsed YAML configuration
        overrides: Values given on the command line, None entries are ignored
        load_env_file: Whether to read a .env file into the environment first

    Returns:
        ImportSettings
    """
    if load_env_file:
        load_dotenv()

    store = config.get('store', {}) or {}
    import_section = config.get('import', {}) or {}
    logging_section = config.get('logging', {}) or {}
    overrides = {key: value for key, value in (overrides or {}).items() if value is not None}

    try:
        settings = ImportSettings(
            store_url=(
                overrides.get('store_url') or
                os.getenv('CATALOG_STORE_URL') or
                store.get('base_url') or
                ''
            ),
            store_api_key=(
                os.getenv('CATALOG_STORE_API_KEY') or
                store.get('api_key') or
                ''
            ),
            store_timeout=float(store.get('timeout', DEFAULT_TIMEOUT)),
            owner_id=(
                overrides.get('owner_id') or
                os.getenv('CATALOG_OWNER_ID') or
                import_section.get('owner_id') or
                ''
            ),
            throttle_seconds=float(import_section.get('throttle_seconds', 0.0)),
            max_file_size_mb=float(import_section.get('max_file_size_mb', DEFAULT_MAX_FILE_SIZE_MB)),
            log_level=str(
                overrides.get('log_level') or
                logging_section.get('level') or
                'INFO'
            ).upper(),
            log_file=logging_section.get('file') or '',
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting in configuration: {e}") from e

    return settings

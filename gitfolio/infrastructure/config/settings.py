"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a YAML
configuration file (~/.gitfolio/config.yaml by default).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Dict

import yaml
from dotenv import load_dotenv

from gitfolio.infrastructure.github.request_executor import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT
from gitfolio.infrastructure.storage.token_store import DEFAULT_CREDENTIALS_FILE

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".gitfolio"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "GITFOLIO_"

# Cache freshness per data class, in seconds
DEFAULT_CACHE_TTL_SECONDS = 5 * 60
USER_CACHE_TTL_SECONDS = 10 * 60
LANGUAGES_CACHE_TTL_SECONDS = 30 * 60
SEARCH_CACHE_TTL_SECONDS = 2 * 60

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


@dataclass(frozen=True)
class CacheTTLs:
    """Staleness tolerance per data class."""
    default: float = DEFAULT_CACHE_TTL_SECONDS
    user: float = USER_CACHE_TTL_SECONDS
    languages: float = LANGUAGES_CACHE_TTL_SECONDS
    search: float = SEARCH_CACHE_TTL_SECONDS


@dataclass(frozen=True)
class RetrySettings:
    max_retries: int = 3
    base_delay_seconds: float = 1.0
    max_jitter_seconds: float = 1.0
    max_rate_limit_wait_seconds: float = 60.0


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None, force: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    # 3. Environment Variables (Highest priority) are handled in get_config

    _loaded = True
    logger.debug("Configuration loading process completed.")


def _coerce_env_value(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def _lookup_nested(data: Dict[str, Any], key: str) -> Any:
    """Resolves 'a.b.c' against nested YAML mappings; flat keys win."""
    if key in data:
        return data[key]
    node: Any = data
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (GITFOLIO_GITHUB_TOKEN or GITHUB_TOKEN for 'github.token')
    3. YAML config (dotted keys walk nested mappings)
    4. Default value

    Args:
        key: The configuration key
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace('.', '_')
    for candidate in (ENV_PREFIX + env_key, env_key):
        if candidate in os.environ:
            return _coerce_env_value(os.environ[candidate])

    value = _lookup_nested(_config, key)
    if value is not None:
        return value

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def get_github_token() -> Optional[str]:
    """Token from configuration (GITHUB_TOKEN env var or github.token in YAML)."""
    token = get_config('github.token')
    return str(token) if token else None


def get_api_url() -> str:
    return str(get_config('github.api_url', DEFAULT_API_URL))


def get_user_agent() -> str:
    return str(get_config('github.user_agent', DEFAULT_USER_AGENT))


def get_timeout_seconds() -> float:
    return float(get_config('github.timeout_seconds', DEFAULT_TIMEOUT_SECONDS))


def get_cache_ttls() -> CacheTTLs:
    """Builds the per-endpoint cache TTLs, honoring overrides."""
    return CacheTTLs(
        default=float(get_config('cache.default_ttl_seconds', DEFAULT_CACHE_TTL_SECONDS)),
        user=float(get_config('cache.user_ttl_seconds', USER_CACHE_TTL_SECONDS)),
        languages=float(get_config('cache.languages_ttl_seconds', LANGUAGES_CACHE_TTL_SECONDS)),
        search=float(get_config('cache.search_ttl_seconds', SEARCH_CACHE_TTL_SECONDS)),
    )


def get_retry_settings() -> RetrySettings:
    defaults = RetrySettings()
    return RetrySettings(
        max_retries=int(get_config('retry.max_retries', defaults.max_retries)),
        base_delay_seconds=float(get_config('retry.base_delay_seconds', defaults.base_delay_seconds)),
        max_jitter_seconds=float(get_config('retry.max_jitter_seconds', defaults.max_jitter_seconds)),
        max_rate_limit_wait_seconds=float(get_config('retry.max_rate_limit_wait_seconds', defaults.max_rate_limit_wait_seconds)),
    )


def get_token_store_path() -> Path:
    return Path(get_config('token_store.path', DEFAULT_CREDENTIALS_FILE)).expanduser()


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value in memory for the rest of the process."""
    logger.debug(f"Setting config: {key} = {value!r}")
    _config[key] = value


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")

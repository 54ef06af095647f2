"""Configuration management for LinkReport."""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

from src.aggregator.data_aggregator import MAX_TRANSACTIONS_PAGE

logger = logging.getLogger(__name__)

LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG', 'NOTSET')


@dataclass(frozen=True)
class AppConfig:
    """Settings for the callback server and the consent flow."""
    host: str = 'localhost'
    port: int = 3000
    callback_path: str = '/callback'
    keys_dir: Path = Path('./keys')
    transactions_page_size: int = MAX_TRANSACTIONS_PAGE
    open_browser: bool = True
    log_level: str = 'INFO'
    # TLS for an https redirect URL; plain HTTP when either is empty
    tls_cert_path: str = ''
    tls_key_path: str = ''

    @property
    def use_tls(self) -> bool:
        return bool(self.tls_cert_path and self.tls_key_path)

    @property
    def redirect_url(self) -> str:
        scheme = 'https' if self.use_tls else 'http'
        return f"{scheme}://{self.host}:{self.port}{self.callback_path}"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def load_config() -> AppConfig:
    """
    Load configuration from environment variables.

    Returns:
        AppConfig built from the environment, with defaults for anything unset.

    Raises:
        ValueError: If a value is out of range.
    """
    # Load environment variables from .env file
    env_path = Path(__file__).parent.parent / '.env'
    if env_path.exists():
        load_dotenv(env_path)
        logger.info(f"Loaded configuration from {env_path}")
    else:
        logger.info("No .env file found, using environment variables only")

    config = AppConfig(
        host=os.getenv('CALLBACK_HOST', 'localhost'),
        port=_env_int('CALLBACK_PORT', 3000),
        callback_path=os.getenv('CALLBACK_PATH', '/callback'),
        keys_dir=Path(os.getenv('KEYS_DIR', './keys')),
        transactions_page_size=_env_int('TRANSACTIONS_PAGE_SIZE', MAX_TRANSACTIONS_PAGE),
        open_browser=_env_bool('OPEN_BROWSER', True),
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        tls_cert_path=os.getenv('TLS_CERT_PATH', ''),
        tls_key_path=os.getenv('TLS_KEY_PATH', ''),
    )

    _validate_config(config)
    return config


def _validate_config(config: AppConfig) -> None:
    """
    Validate configuration values.

    Args:
        config: Configuration to validate.

    Raises:
        ValueError: If a value cannot be used.
    """
    if not 0 < config.port < 65536:
        raise ValueError(f"CALLBACK_PORT out of range: {config.port}")
    if not config.callback_path.startswith('/'):
        raise ValueError(f"CALLBACK_PATH must start with '/': {config.callback_path!r}")
    if config.transactions_page_size < 1:
        raise ValueError(f"TRANSACTIONS_PAGE_SIZE must be positive: {config.transactions_page_size}")
    if config.transactions_page_size > MAX_TRANSACTIONS_PAGE:
        logger.warning(f"TRANSACTIONS_PAGE_SIZE {config.transactions_page_size} exceeds {MAX_TRANSACTIONS_PAGE}; "
                       f"pages will be capped at {MAX_TRANSACTIONS_PAGE}")
    if config.log_level not in LOG_LEVELS:
        raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}: {config.log_level!r}")
    if bool(config.tls_cert_path) != bool(config.tls_key_path):
        logger.warning("Only one of TLS_CERT_PATH/TLS_KEY_PATH is set; serving plain HTTP")
    logger.info("Configuration validation completed")

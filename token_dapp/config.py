import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from .models import ConfigurationError
from .validate_address import is_valid_address

logger = logging.getLogger(__name__)

# Default paths relative to the project root (one level above this package)
PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_ENV_PATH = PROJECT_ROOT / '.env'


@dataclass
class TokenServiceConfig:
    url: str = 'http://localhost:3000'
    timeout: float = 30.0


@dataclass
class BulkTransferConfig:
    delay_seconds: float = 1.0 # pacing between submissions from one sender
    record_failures: bool = False
    source_address: Optional[str] = None


@dataclass
class HistoryConfig:
    history_file: str = 'data/transaction_history.json'
    export_dir: str = 'exports'


@dataclass
class AppConfig:
    token_service: TokenServiceConfig = field(default_factory=TokenServiceConfig)
    bulk: BulkTransferConfig = field(default_factory=BulkTransferConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    dry_run: bool = False
    debug: bool = False


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() == 'true'


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def load_config(env_file: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Loads configuration from environment variables and .env files.
    The base .env provides defaults, an explicit env_file overrides it, and
    variables already set in the process environment win over the base file.

    Args:
        env_file: Optional path to an extra env file applied with override.
    """
    loaded_base = load_dotenv(dotenv_path=DEFAULT_ENV_PATH)
    if loaded_base:
        logger.info(f"Loaded base configuration from {DEFAULT_ENV_PATH}")
    else:
        logger.debug(f"Base configuration file not found at {DEFAULT_ENV_PATH}, relying on environment variables.")

    if env_file:
        env_path = Path(env_file)
        if not env_path.exists():
            raise ConfigurationError(f"Environment file not found: {env_path}")
        load_dotenv(dotenv_path=env_path, override=True)
        logger.info(f"Loaded and applied overrides from {env_path}")

    token_service = TokenServiceConfig(
        url=os.getenv('TOKEN_SERVICE_URL', TokenServiceConfig.url).rstrip('/'),
        timeout=_env_float('TOKEN_SERVICE_TIMEOUT', TokenServiceConfig.timeout),
    )
    if token_service.timeout <= 0:
        raise ConfigurationError("TOKEN_SERVICE_TIMEOUT must be greater than 0")

    bulk = BulkTransferConfig(
        delay_seconds=_env_float('BULK_TRANSFER_DELAY', BulkTransferConfig.delay_seconds),
        record_failures=_env_flag('RECORD_FAILED_TRANSFERS'),
        source_address=os.getenv('SOURCE_ADDRESS') or None,
    )
    if bulk.delay_seconds < 0:
        raise ConfigurationError("BULK_TRANSFER_DELAY cannot be negative")
    if bulk.source_address and not is_valid_address(bulk.source_address):
        raise ConfigurationError(f"SOURCE_ADDRESS is not a valid address: {bulk.source_address}")

    history = HistoryConfig(
        history_file=os.getenv('HISTORY_FILE', HistoryConfig.history_file),
        export_dir=os.getenv('EXPORT_DIR', HistoryConfig.export_dir),
    )

    app_config = AppConfig(
        token_service=token_service,
        bulk=bulk,
        history=history,
        dry_run=_env_flag('DRY_RUN'),
        debug=_env_flag('DEBUG'),
    )
    logger.info(f"Configuration loaded. Token service: {token_service.url}, Dry Run: {app_config.dry_run}")
    return app_config

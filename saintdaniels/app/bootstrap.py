"""SaintDaniels - wiring of logging, configuration and the session store."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from saintdaniels.app.state import SessionStore
from saintdaniels.shared.core.configuration import ConfigManager, LoggingConfig, SystemConfig
from saintdaniels.shared.core.event_bus import EventBus
from saintdaniels.shared.infrastructure.auth.base import AuthProvider
from saintdaniels.shared.infrastructure.auth.mock_provider import MockAuthProvider
from saintdaniels.shared.infrastructure.ledger.base import RewardsLedger
from saintdaniels.shared.infrastructure.ledger.memory_ledger import InMemoryRewardsLedger

logger = logging.getLogger(__name__)

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(config: LoggingConfig) -> None:
    """Configure the root logger.

    File handler (when ``config.file`` is set) logs at ``config.level``;
    the console handler only shows ``config.console_level`` and above.
    """
    file_log_level = LOG_LEVEL_MAP.get(config.level.upper(), logging.INFO)
    console_log_level = LOG_LEVEL_MAP.get(config.console_level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(min(file_log_level, console_log_level))

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    if config.file:
        log_file_path = Path(config.file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(file_log_level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_log_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    ))
    root_logger.addHandler(console_handler)

    logger.info(f"Logging configured: file={config.file or 'disabled'}, console={config.console_level}+")


def create_store(
    config: Optional[SystemConfig] = None,
    event_bus: Optional[EventBus] = None,
    auth_provider: Optional[AuthProvider] = None,
    ledger: Optional[RewardsLedger] = None,
) -> SessionStore:
    """Build a SessionStore from configuration.

    Any capability not supplied falls back to the mock/in-memory one.
    """
    config = config or SystemConfig()
    return SessionStore(
        event_bus or EventBus(),
        auth_provider or MockAuthProvider(starter_points=config.session.starter_points),
        ledger or InMemoryRewardsLedger(config.rewards.catalog),
        sign_in_max_retries=config.auth.sign_in_max_retries,
        retry_delay=config.auth.retry_delay,
    )


async def start(config_dir: Optional[Path] = None, env_file: Optional[Path] = None) -> SessionStore:
    """Load environment and config, configure logging, and return a store with its catalog loaded."""
    load_dotenv(dotenv_path=env_file)

    config = ConfigManager(config_dir).get_config()
    configure_logging(config.logging)

    store = create_store(config)
    await store.load_rewards()
    return store

# wg_manager/main.py
"""
WireGuard Manager - service bootstrap
Configures logging and builds the shared configuration service
"""

import logging
from functools import lru_cache
from typing import Optional

from .config import settings
from .core import WireGuardConfigService

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from settings.LOG_LEVEL"""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@lru_cache()
def get_config_service() -> WireGuardConfigService:
    """
    Shared configuration service
    Loads the document on first call; a malformed document raises
    ConfigParseError here and no service is created.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENV}")

    service = WireGuardConfigService()

    if not service.is_linux():
        logger.warning("WireGuard interfaces can only be managed on Linux")
    if not service.check_installed():
        logger.warning(f"'{settings.WG_BINARY}' not found on PATH; key generation will fail")

    return service

import logging
import os
import sys

import uvicorn

from .config import get_config
from .exceptions import ConfigurationError, log_exception

# Module-level logger for use before logging is fully configured
logger = logging.getLogger(__name__)


def setup_logging(log_level: str, environment: str):
    """Setup logging (optional - controlled by LOGGING_ENABLED env var)"""
    logging_enabled = os.getenv("LOGGING_ENABLED", "true").lower() in ("true", "1", "yes")

    if not logging_enabled:
        logging.disable(logging.CRITICAL)
        return

    log_format = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s'

    handlers = [logging.StreamHandler()]  # Console output

    log_file = os.getenv("LOGGING_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='a'))

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format=log_format,
        handlers=handlers
    )

    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info(f"✅ Logging configured for {environment} environment")


def main():
    """Main entry point"""
    try:
        config = get_config()
        setup_logging(config.server.log_level, config.server.environment)
        config.log_config()
    except ConfigurationError as e:
        logger.error(f"❌ Configuration error: {e.message}")
        log_exception(e, "configuration_loading")
        sys.exit(1)

    logger.info(f"🎯 Open Day API listening on {config.server.host}:{config.server.port}")

    try:
        uvicorn.run(
            "openday.api.app:app",
            host=config.server.host,
            port=config.server.port,
            reload=os.getenv('API_RELOAD', 'false').lower() == 'true',
            log_level=config.server.log_level.lower()
        )
    except Exception as e:
        logger.error(f"💥 Server failed to start: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()

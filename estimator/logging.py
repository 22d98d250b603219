# estimator/logging.py

import logging
import logging.config
import os

from estimator.core.config import settings


def configure_logging(config_path: str = None) -> logging.Logger:
    """Apply the logging.conf file config, or a basic console setup when it is missing."""
    config_path = config_path or settings.LOG_CONFIG_PATH

    if os.path.exists(config_path):
        # Ensure logs directory exists
        os.makedirs("logs", exist_ok=True)
        logging.config.fileConfig(config_path, disable_existing_loggers=False)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    return logging.getLogger()

"""
Logging for the journal service: one stdout handler on the root logger.

Logs share stdout with the server, which suits the default SSE transport.
"""

import logging
import sys
from typing import Optional

from .config import AppConfig

# Client libraries that log every HTTP round trip at INFO
NOISY_LOGGERS = ('opensearch', 'urllib3', 'botocore', 'boto3')


def _level(config: Optional[AppConfig]) -> int:
    if config is None:
        from .config import config as default_config
        config = default_config
    return getattr(logging, config.log_level.upper(), logging.INFO)


def setup_logging(config: Optional[AppConfig] = None) -> None:
    """Install the stdout handler at LOG_LEVEL.

    Store and AWS client loggers are held at WARNING or above so request
    traces do not drown out account and memory events. An unknown LOG_LEVEL
    falls back to INFO.

    Args:
        config: AppConfig whose log_level applies, the global config if None
    """
    level = _level(config)
    logging.basicConfig(level=level,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                        handlers=[logging.StreamHandler(sys.stdout)])

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str, config: Optional[AppConfig] = None) -> logging.Logger:
    """Module logger for the journal, pinned to LOG_LEVEL.

    Args:
        name: Dotted module name, normally __name__
        config: AppConfig whose log_level applies, the global config if None
    """
    logger = logging.getLogger(name)
    logger.setLevel(_level(config))
    return logger

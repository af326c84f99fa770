import threading
from typing import Optional

from loguru import logger
from storefront.config import get_config

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


class AppLogger:
    """Owns the single stdout sink shared by every service logger.

    The sink is installed on first use and replaced only when the configured
    log level changes; otherwise `get_logger` just binds a context name.
    """
    _lock = threading.Lock()
    _handler_id: Optional[int] = None
    _level: Optional[str] = None

    def __init__(self) -> None:
        self.logger = logger
        self.configure(get_config().log_level)

    @classmethod
    def configure(cls, level: str) -> None:
        level = level.upper()
        with cls._lock:
            if cls._handler_id is not None and cls._level == level:
                return
            if cls._handler_id is None:
                # drop loguru's default stderr sink
                logger.remove()
            else:
                logger.remove(cls._handler_id)
            cls._handler_id = logger.add(
                sink=lambda msg: print(msg, end=""),
                level=level,
                format=LOG_FORMAT,
            )
            cls._level = level

    def get_logger(self, name: str = None):
        """Get a logger bound to a context name.

        Args:
            name (str, optional): Name for the logger context. Defaults to the
                ``storefront`` root.
        Returns:
            loguru.Logger: The configured logger instance.
        """
        return self.logger.bind(name=name or "storefront")


def get_logger(name: str = None):
    """Get a service logger, (re)configuring the sink if the log level changed."""
    return AppLogger().get_logger(name)

import logging
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(name: str = "orbitmag", level: str = "INFO",
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        name: Logger name, child loggers inherit its handlers
        level: Logging level name
        log_file: Optional path of an additional log file

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Repeated runs in one process must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler
    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)

    # File handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger

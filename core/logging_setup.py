import logging
import os
from logging.handlers import RotatingFileHandler

from core.config import Config


class ThirdPartyFilter(logging.Filter):
    """Drop chatty library records below INFO."""
    def filter(self, record):
        if record.name.startswith(("sqlalchemy", "apscheduler")) and record.levelno < logging.INFO:
            return False
        return True


def setup_logging(log_dir: str = None, debug: bool = None) -> logging.Logger:
    """Set up the 'clinic' logger with a detail log, an error log and the console."""
    log_dir = log_dir or Config.LOG_DIR
    debug = Config.DEBUG if debug is None else debug
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError as e:
        print(f"Failed to create log directory {log_dir}: {e}")
        log_dir = None

    logger = logging.getLogger("clinic")
    if logger.handlers:  # Prevent duplicate handlers on Streamlit reruns
        return logger

    logger.setLevel(logging.DEBUG)

    detailed_formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    simple_formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

    if log_dir:
        try:
            detail_handler = RotatingFileHandler(
                os.path.join(log_dir, "clinic.log"), maxBytes=5 * 1024 * 1024, backupCount=5
            )
            detail_handler.setLevel(logging.DEBUG if debug else logging.INFO)
            detail_handler.setFormatter(detailed_formatter)
            detail_handler.addFilter(ThirdPartyFilter())
            logger.addHandler(detail_handler)

            error_handler = RotatingFileHandler(
                os.path.join(log_dir, "error_log.txt"), maxBytes=5 * 1024 * 1024, backupCount=5
            )
            error_handler.setLevel(logging.WARNING)
            error_handler.setFormatter(simple_formatter)
            logger.addHandler(error_handler)
        except OSError as e:
            print(f"Failed to set up log files in {log_dir}: {e}")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(detailed_formatter)
    console_handler.addFilter(ThirdPartyFilter())
    logger.addHandler(console_handler)

    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logger.info("Logging configured (dir=%s)", log_dir)
    return logger


def get_logger(name=None):
    """Return a child of the 'clinic' logger."""
    if not name:
        return logging.getLogger("clinic")
    return logging.getLogger(f"clinic.{name}")

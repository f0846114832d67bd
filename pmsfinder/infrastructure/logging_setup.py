# pmsfinder/infrastructure/logging_setup.py
import logging
import sys


def setup_logging(level: int = logging.INFO) -> None:
    """Send all pmsfinder log records to stdout with a timestamped format."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True
    )


def make_log(logger: logging.Logger, log_callback=None):
    """
    Build the ``log(message, status)`` helper used by the batch jobs.

    Messages go to ``log_callback`` when one is given, otherwise to
    ``logger`` at the level matching ``status``.
    """
    levels = {
        "info": logging.INFO,
        "success": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def log(message, status="info"):
        if log_callback:
            log_callback(message, status)
        else:
            logger.log(levels.get(status, logging.INFO), message)

    return log

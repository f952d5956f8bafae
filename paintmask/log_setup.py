"""Named loggers for the paintmask components.

Every component asks for its own logger by name. The first call for a name
attaches a file handler writing to ``logs/paintmask.log`` next to the package
(or to the directory named by the ``PAINTMASK_LOG_DIR`` environment variable),
so the host application's own logging configuration is left alone.
"""
import logging
import os

from .config import LOG_DIR_ENV, LOG_FILE_NAME


def _log_dir():
    override = os.environ.get(LOG_DIR_ENV)
    if override:
        return override
    return os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'logs')


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    # Check if handler already exists to avoid duplicate logs
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    try:
        log_dir = _log_dir()
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.FileHandler(os.path.join(log_dir, LOG_FILE_NAME))
    except OSError:
        logger.addHandler(logging.NullHandler())
        return logger
    fh.setLevel(logging.INFO)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(message)s')
    fh.setFormatter(formatter)
    logger.addHandler(fh)
    return logger

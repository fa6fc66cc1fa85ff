# logging_setups.py
# ------------------------------------------------------------
# Logger helpers. Library modules only call get_logger(); scripts call
# basic_logging_setup() once to decide where the messages go.

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name):
    return logging.getLogger(name)


def basic_logging_setup(level=logging.INFO, logfile=None, max_bytes=5_000_000, backups=3):
    """
    Configure the ``collective`` logger hierarchy.

    Args:
        level: Level for the stream handler (and the file handler, if any).
        logfile: Optional path of a rotating log file.
        max_bytes: Size at which the log file is rotated.
        backups: Number of rotated files to keep.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("collective")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if logfile:
        folder = os.path.dirname(logfile)
        if folder:
            os.makedirs(folder, exist_ok=True)
        file_handler = RotatingFileHandler(logfile, maxBytes=max_bytes, backupCount=backups)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger

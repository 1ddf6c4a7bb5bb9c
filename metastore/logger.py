# ==============================================
# Logger
# ==============================================
#
# PURPOSE:
#   Build the "metastore" logger used by the CLI. Library code
#   never calls this: stores take an injected logger and fall back
#   to logging.getLogger(__name__).
#
# FUNCTION:
# ---------
# - get_logger(name="metastore", level=INFO) -> logging.Logger
#     Attach one stderr handler the first time a name is seen.
#     `level` may be an int or a level name ("DEBUG", "info").
#
# ==============================================

import logging
import sys


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str = "metastore", level=logging.INFO) -> logging.Logger:
    """Return a logger with a single stderr handler attached."""
    logger = logging.getLogger(name)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
        logger.addHandler(handler)

    return logger

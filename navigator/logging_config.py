import logging

from navigator.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> logging.Logger:
    """Set up the ``navigator`` logger tree once per app.

    ``verbose_logging`` turns on the request/response detail messages that
    are emitted at DEBUG; otherwise the tree runs at ``log_level``.
    """
    logger = logging.getLogger("navigator")
    level = logging.DEBUG if settings.verbose_logging else logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger

import logging
import os

DEFAULT_LOG_LEVEL = "WARNING"

logger = logging.getLogger("typewriter")
trace_logger = logging.getLogger("typewriter.trace")

# Create a custom logging level
DETAIL = 15
logging.addLevelName(DETAIL, "DETAIL")


# Create a custom log method for the "DETAIL" level
def detail(self, message, *args, **kws):
    if self.isEnabledFor(DETAIL):
        self._log(DETAIL, message, args, **kws)


# Add the custom log method to the logging.Logger class
logging.Logger.detail = detail  # type: ignore


def get_logger() -> logging.Logger:
    """The package logger with its level taken from the `LOG_LEVEL` environment variable."""
    level_name = os.environ.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL
    logger.setLevel(getattr(logging, level_name.upper(), getattr(logging, DEFAULT_LOG_LEVEL)))
    return logger


def log_streaming_init(level: int) -> None:
    """Send package log records to stderr at `level`, adding the handler only once."""
    handler = logging.StreamHandler()
    handler.name = "typewriter_log_handler"
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(message)s"))

    if "typewriter_log_handler" not in [h.name for h in logger.handlers]:
        logger.addHandler(handler)
    logger.setLevel(level)

"""Console and file logging for the explorer API.

Environment:
    LOG_LEVEL: debug, info, warning or error (default info).
    LOG_TO_FILE: also write ``explorer.log`` (default true).
    LOG_DIR: directory of the log file (default ``./logs``).
    TIMEZONE: timezone of the timestamps (default Europe/Berlin).
"""

from datetime import datetime
import logging
import logging.config
import os

from pytz import timezone

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ANSI_RESET = "\033[0m"
ANSI_COLORS: dict[str, str] = {
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
}

LEVEL_MARKERS: dict[int, str] = {
    logging.WARNING: "⚠️ ",
    logging.ERROR: "⛔ ",
    logging.CRITICAL: "⛔ ",
}


def get_log_level() -> int:
    return LOG_LEVELS.get(os.getenv("LOG_LEVEL", "info").strip().lower(), logging.INFO)


class TimezoneFormatter(logging.Formatter):
    """Renders timestamps in the configured timezone and marks warnings and errors."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        created = datetime.fromtimestamp(record.created, self.tz)
        return created.strftime(datefmt) if datefmt else created.isoformat()

    def format(self, record):
        marker = LEVEL_MARKERS.get(record.levelno, "")
        if not marker:
            return super().format(record)
        # the record is shared by all handlers, so the marker goes on a copy
        marked = logging.makeLogRecord(record.__dict__)
        marked.msg = marker + record.getMessage()
        marked.args = ()
        return super().format(marked)


class ColoredFormatter(TimezoneFormatter):
    """Wraps a line in the ANSI color named by the record's ``color`` attribute."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = ANSI_COLORS.get(getattr(record, "color", None) or "")
        return f"{ansi}{line}{ANSI_RESET}" if ansi else line


class ColorLogger:
    """
    Logger whose methods accept an optional ``color=`` keyword.

        logger.info("Vault refreshed", color="green")

    Only the console shows the color, the log file stays plain text. Any other
    attribute is looked up on the wrapped :class:`logging.Logger`.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def log(self, level: int, msg, *args, color: str | None = None, **kwargs):
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.DEBUG, msg, *args, color=color, **kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.INFO, msg, *args, color=color, **kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.WARNING, msg, *args, color=color, **kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.ERROR, msg, *args, color=color, **kwargs)

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.CRITICAL, msg, *args, color=color, **kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.ERROR, msg, *args, color=color, **{"exc_info": True, **kwargs})

    def __getattr__(self, name):
        return getattr(self._logger, name)


def _formatter_config(formatter_class: type[logging.Formatter], tz_name: str) -> dict:
    return {"()": formatter_class, "format": LOG_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name}


def _handler_config(level: int) -> dict:
    handlers: dict = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "colored",
            "level": level,
            "stream": "ext://sys.stdout",
        },
    }
    if os.getenv("LOG_TO_FILE", "true").strip().lower() in ("true", "1", "yes", "on"):
        log_dir = os.getenv("LOG_DIR") or os.path.join(os.getcwd(), "logs")
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "plain",
            "level": level,
            "filename": os.path.join(log_dir, "explorer.log"),
            "encoding": "utf-8",
        }
    return handlers


def setup_logging(name: str = "sovereign_explorer") -> ColorLogger:
    """
    Configures the root logger from the environment and returns the application logger.

    Args:
        name (str): Name of the returned logger.

    Returns:
        ColorLogger: The application logger.
    """
    level = get_log_level()
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    handlers = _handler_config(level)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": _formatter_config(TimezoneFormatter, tz_name),
            "colored": _formatter_config(ColoredFormatter, tz_name),
        },
        "handlers": handlers,
        "root": {"handlers": list(handlers), "level": level},
    })

    # httpx logs every request on info
    logging.getLogger("httpx").setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)

    return ColorLogger(logging.getLogger(name))

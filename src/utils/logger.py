import logging

from rich.console import Console
from rich.logging import RichHandler

from utils import config


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14  # Initial default width

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )

        dynamic_width = CenteredFormatter.longest_name_length + 2
        record.name = f"{record.name.center(dynamic_width - 2)}"
        return super().format(record)


_console = None


def _get_console() -> Console:
    # the TUI owns stdout, so rich output goes to stderr
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


def _make_handler(log_level) -> logging.Handler:
    formatter = CenteredFormatter("[%(name)s]  %(message)s")
    if config.LOG_FILE:
        # closed by logging.shutdown at interpreter exit
        handler = logging.FileHandler(config.LOG_FILE, encoding="utf-8")
        formatter = CenteredFormatter("%(asctime)s %(levelname)-8s [%(name)s]  %(message)s")
    else:
        handler = RichHandler(
            console=_get_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    return handler


def get_logger(name=None) -> logging.Logger:
    """
    Creates and returns a logger configured with RichHandler for rich output,
    or with a plain file handler when SHOPFRONT_LOG_FILE is set.
    """
    if name is None:
        name = "Default"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if config.DEBUG else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        logger.addHandler(_make_handler(log_level))
        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized.")

    return logger

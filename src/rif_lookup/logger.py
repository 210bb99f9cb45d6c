"""Simple logging configuration for rif-lookup."""

import logging
import sys

# Define TRACE level (lower than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class ColoredFormatter(logging.Formatter):
    """Colored log formatter using ANSI escape codes."""

    COLORS = {
        "TRACE": "\033[90m",  # Dark gray
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, *args, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, coloring the level name on terminals."""
        levelname = record.levelname
        if self.use_color and levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{self.BOLD}{levelname}{self.RESET}"
            )

        result = super().format(record)

        record.levelname = levelname

        return result


def setup_logging(log_level: str = "INFO") -> None:
    """Configure logging for the application.

    Log records go to stderr so that JSON written to stdout by the CLI stays
    machine readable.

    When the level is DEBUG, web3, urllib3 and aiohttp loggers are set to
    WARNING to reduce noise. Use TRACE to see everything.
    """
    log_level = log_level.upper()
    level = TRACE if log_level == "TRACE" else getattr(logging, log_level, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    formatter = ColoredFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        use_color=sys.stderr.isatty(),
    )
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    noisy = ("web3", "urllib3", "aiohttp")
    if log_level == "DEBUG":
        for name in noisy:
            logging.getLogger(name).setLevel(logging.WARNING)
    elif log_level == "TRACE":
        for name in noisy:
            logging.getLogger(name).setLevel(TRACE)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)

import os
import logging
from pathlib import Path
from typing import Optional
from logging.handlers import TimedRotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

NOISY_LOGGERS = ["urllib3", "httpx", "httpcore", "asyncio", "charset_normalizer"]


def default_log_dir() -> Path:
    xdg_state = os.environ.get("XDG_STATE_HOME")
    if xdg_state:
        return Path(xdg_state) / "podcraft" / "logs"
    return Path.home() / ".local" / "state" / "podcraft" / "logs"


def setup_logging(log_dir: Optional[str] = None, debug: bool = False, output_mode: str = "standard",
                  console: Optional[Console] = None) -> logging.Logger:
    """Configures logging to console and rotating file.

    Args:
        log_dir: Directory for log files. If None, uses ~/.local/state/podcraft/logs
        debug: If True, set logging level to DEBUG, otherwise INFO
        output_mode: 'standard', 'verbose', 'silent'. 'silent' suppresses console output.
        console: Rich console shared with command output.
    """
    log_path = Path(log_dir).expanduser() if log_dir else default_log_dir()
    log_file = log_path / "podcraft.log"

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger("Podcraft")

    if output_mode == "silent":
        console_level = logging.CRITICAL
        file_level = logging.DEBUG
    elif debug or output_mode == "verbose":
        console_level = logging.DEBUG
        file_level = logging.DEBUG
    else:
        console_level = logging.INFO
        file_level = logging.INFO

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    if logger.handlers:
        # Reconfigure levels on repeated calls
        for handler in logger.handlers:
            if isinstance(handler, TimedRotatingFileHandler):
                handler.setLevel(file_level)
            else:
                handler.setLevel(console_level)
        return logger

    if output_mode != "silent":
        console_handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            markup=False,
            show_time=True,
            show_path=False
        )
        console_handler.setLevel(console_level)
        logger.addHandler(console_handler)

    try:
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(log_file, when="midnight", interval=1, backupCount=30)
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"Could not create log file at {log_file}: {e}. Logging to console only.")

    return logger

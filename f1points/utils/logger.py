"""
Logging setup for the points pipeline using loguru.

Console output goes to stderr; when a log directory is given, a daily file
is kept as well. Level, rotation and retention come from cfg.logging.
"""
import sys
from pathlib import Path
from loguru import logger as _logger

from f1points.config import cfg


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logger(log_dir: Path | None = None, level: str | None = None) -> Path | None:
    """
    Configure console logging and, optionally, a rotating log file.

    Args:
        log_dir: Directory for log files. If None, only the console is used.
        level: Minimum log level; defaults to cfg.logging.level.

    Returns:
        The log file path pattern, or None without a file sink.
    """
    level = (level or cfg.logging.level).upper()
    _logger.remove()
    _logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_dir is None:
        return None

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"{cfg.logging.file_stem}_{{time:YYYY-MM-DD}}.log"
    _logger.add(
        log_path,
        level=level,
        format=FILE_FORMAT,
        rotation=cfg.logging.rotation,
        retention=cfg.logging.retention,
    )
    return log_path


logger = _logger

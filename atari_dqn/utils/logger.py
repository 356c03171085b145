"""
Centralized logging infrastructure for the Atari DQN project.

Usage:
    from atari_dqn.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Training started")
    logger.debug("Epsilon: 0.95")

Configuration:
    Set LOG_LEVEL in config.py (or pass --log-level) to control verbosity:
    - DEBUG: All messages including frame dumps
    - INFO: Normal operation messages (default)
    - WARNING: Warnings and errors only
    - ERROR: Errors only
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class LogLevel(Enum):
    """Log levels for configuration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    @classmethod
    def from_name(cls, name: str) -> 'LogLevel':
        """Look up a level by its (case-insensitive) name."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None


ROOT_LOGGER_NAME = 'dqn'

_initialized = False
_file_handler: Optional[logging.FileHandler] = None


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)
        # Color a copy so file handlers sharing the record stay plain
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        record.levelname = f"{color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


def setup_logging(
    log_dir: str = 'logs',
    level: LogLevel = LogLevel.INFO,
    console_output: bool = True,
    file_output: bool = True,
    log_filename: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Initialize the logging system.

    Args:
        log_dir: Directory for log files
        level: Minimum log level to capture
        console_output: Whether to output to console
        file_output: Whether to output to file
        log_filename: Custom log filename (default: training_YYYYMMDD_HHMMSS.log)
        force: Reconfigure even if logging was already initialized
    """
    global _initialized, _file_handler

    if _initialized and not force:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _file_handler = None

    fmt = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level.value)
        console_handler.setFormatter(ColoredFormatter(fmt, use_colors=True))
        root_logger.addHandler(console_handler)

    if file_output:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        if log_filename is None:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            log_filename = f'training_{timestamp}.log'

        _file_handler = logging.FileHandler(log_path / log_filename, mode='a', encoding='utf-8')
        _file_handler.setLevel(logging.DEBUG)  # Capture everything in file
        _file_handler.setFormatter(logging.Formatter(fmt))
        root_logger.addHandler(_file_handler)

    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    _initialized = True
    root_logger.debug(f"Logging initialized (level={level.name}, file={file_output})")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger under the 'dqn' namespace

    Example:
        logger = get_logger(__name__)
        logger.info("Message")
    """
    # Library code never writes files on its own; main.py calls setup_logging()
    if not _initialized:
        setup_logging(file_output=False)

    if name.startswith('atari_dqn.'):
        name = name[len('atari_dqn.'):]

    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def get_log_path() -> Optional[Path]:
    """Get the current log file path."""
    if _file_handler is not None:
        return Path(_file_handler.baseFilename)
    return None


def log_training_metrics(
    episode: int,
    score: float,
    epsilon: float,
    iteration: int,
    memory_size: int,
    loss: Optional[float] = None,
    steps: Optional[int] = None,
) -> None:
    """
    Log per-episode training metrics in a consistent format.

    Args:
        episode: Current episode number
        score: Raw (unclipped) episode score
        epsilon: Exploration rate used during the episode
        iteration: Update iterations performed so far
        memory_size: Current replay memory occupancy
        loss: Average training loss (if any update happened)
        steps: Agent steps in the episode
    """
    logger = get_logger('training')

    metrics = [
        f"ep={episode}",
        f"score={score:.1f}",
        f"eps={epsilon:.4f}",
        f"iter={iteration}",
        f"memory={memory_size}",
    ]

    if loss is not None:
        metrics.append(f"loss={loss:.6f}")
    if steps is not None:
        metrics.append(f"steps={steps}")

    logger.info(" | ".join(metrics))


def log_model_event(event: str, path: str, **kwargs) -> None:
    """
    Log model-related events (save/load/restore).

    Args:
        event: Event type ('save', 'load', 'restore')
        path: Model file path
        **kwargs: Additional context (e.g., iteration)
    """
    logger = get_logger('model')

    extra = " | ".join(f"{k}={v}" for k, v in kwargs.items())
    if extra:
        logger.info(f"{event.upper()} | {path} | {extra}")
    else:
        logger.info(f"{event.upper()} | {path}")

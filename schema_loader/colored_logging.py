"""
Colored console logging for the schema_loader command line tool.

Warnings about skipped foreign keys, tables without primary keys and
similar conditions stand out from the per-table debug trace.
"""

import logging
import sys
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """
    Logging formatter that adds ANSI color codes to log messages.

    Levels get their own colors; INFO and DEBUG messages are additionally
    highlighted by what they report.
    """

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }

    SPECIAL_COLORS = {
        'success': '\033[92m',    # Bright Green
        'progress': '\033[94m',   # Bright Blue
        'highlight': '\033[96m',  # Bright Cyan
    }

    RESET = '\033[0m'
    BOLD = '\033[1m'

    SUCCESS_INDICATORS = ('loaded', 'complete', 'registered', 'successfully', '✓')
    PROGRESS_INDICATORS = ('introspecting', 'loading', 'configuring', 'validating', 'rescan')
    HIGHLIGHT_INDICATORS = ('skipping', 'excluded', 'found', 'replacing')

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True):
        """
        Args:
            fmt: Log format string (uses "LEVEL: message" if None)
            use_colors: Whether to use colors; also off when stderr is not a TTY
        """
        if fmt is None:
            fmt = "%(levelname)s: %(message)s"
        super().__init__(fmt)
        self.use_colors = use_colors and hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted_message = super().format(record)
        if not self.use_colors:
            return formatted_message

        color = self.color_for(record)
        if not color:
            return formatted_message
        return f"{color}{formatted_message}{self.RESET}"

    def color_for(self, record: logging.LogRecord) -> str:
        """Pick the ANSI prefix for a record, or '' to leave it uncolored."""
        if record.levelno >= logging.WARNING:
            return self.COLORS.get(record.levelname, '')

        message = record.getMessage().lower()
        if self._is_section_message(message):
            return self.BOLD + self.SPECIAL_COLORS['highlight']
        if any(word in message for word in self.SUCCESS_INDICATORS):
            return self.SPECIAL_COLORS['success'] + self.BOLD
        if any(word in message for word in self.PROGRESS_INDICATORS):
            return self.SPECIAL_COLORS['progress']
        if any(word in message for word in self.HIGHLIGHT_INDICATORS):
            return self.SPECIAL_COLORS['highlight']
        if record.levelname == 'DEBUG':
            return self.COLORS['DEBUG']
        return ''

    @staticmethod
    def _is_section_message(message: str) -> bool:
        return message.strip().startswith('===') or message.strip().startswith('###')


def setup_colored_logging(level: int = logging.INFO, use_colors: bool = True) -> None:
    """
    Route all logging to stderr through :class:`ColoredFormatter`.

    Args:
        level: Logging level (default: INFO)
        use_colors: Whether to use colors (default: True)
    """
    formatter = ColoredFormatter(use_colors=use_colors)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)


def log_success(logger: logging.Logger, message: str) -> None:
    logger.info(f"✓ {message}")


def log_progress(logger: logging.Logger, message: str) -> None:
    logger.info(f"→ {message}")


def log_section(logger: logging.Logger, section_name: str) -> None:
    separator = "=" * 60
    logger.info(separator)
    logger.info(f"  {section_name.upper()}")
    logger.info(separator)

# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Colored logging formatter for terminal output.

Repair progress and neighbor mismatch reports go through the standard
logging module; this formatter colors the level names so warnings stand out
in long repair logs.
"""

from pathlib import Path
from typing import Optional, Union
import logging
import sys


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels in terminal output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def __init__(self, fmt=None, datefmt=None, use_colors=True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record):
        """Format a record, coloring only a copy of the level name."""
        original_levelname = record.levelname

        if self.use_colors and record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            if record.levelname in ('ERROR', 'CRITICAL'):
                record.levelname = f"{self.BOLD}{color}{record.levelname}{self.RESET}"
            else:
                record.levelname = f"{color}{record.levelname}{self.RESET}"

        try:
            return super().format(record)
        finally:
            # Other handlers (like a file handler) see the plain name
            record.levelname = original_levelname


def setup_logging(verbose: bool = False, log_file: Optional[Union[str, Path]] = None) -> None:
    """
    Configure logging for command-line use.

    Args:
        verbose: Log at DEBUG instead of INFO
        log_file: Optional file receiving uncolored records as well
    """
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(
        fmt="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        use_colors=sys.stderr.isatty(),
    ))
    handlers: list[logging.Handler] = [console_handler]

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=handlers,
        force=True
    )

"""
Progress reporting utilities for profilekit.

Status lines go to stderr so that stdout carries only data, which matters
for hooks whose output git shows to the user and for piped JSON.
"""

import os
import sys
from enum import Enum
from typing import Iterator, Optional


class LogLevel(Enum):
    """Levels for progress messages."""
    INFO = 1
    WARNING = 2
    ERROR = 3
    SUCCESS = 4


class ProgressReporter:
    """Writes progress messages to stderr when enabled."""

    COLORS = {
        'reset': '\033[0m',
        'red': '\033[31m',
        'green': '\033[32m',
        'yellow': '\033[33m',
    }

    def __init__(self, enabled: Optional[bool] = None, use_colors: Optional[bool] = None):
        """
        Initialize progress reporter.

        Args:
            enabled: Explicitly enable/disable progress. None = show when stderr is a TTY
            use_colors: Use ANSI colors. None = auto-detect (honours NO_COLOR)
        """
        if enabled is None:
            enabled = sys.stderr.isatty()
        self.enabled = enabled

        if use_colors is None:
            use_colors = sys.stderr.isatty() and os.environ.get('NO_COLOR') is None
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if self.use_colors and color in self.COLORS:
            return f"{self.COLORS[color]}{text}{self.COLORS['reset']}"
        return text

    def __call__(self, message: str, force: bool = False, level: LogLevel = LogLevel.INFO):
        """Print a progress message if enabled (or forced)."""
        if not (force or self.enabled):
            return
        if level == LogLevel.ERROR:
            message = self._colorize(f"✗ {message}", 'red')
        elif level == LogLevel.WARNING:
            message = self._colorize(f"⚠ {message}", 'yellow')
        elif level == LogLevel.SUCCESS:
            message = self._colorize(f"✓ {message}", 'green')
        print(message, file=sys.stderr, flush=True)

    def error(self, message: str):
        """Errors are always shown."""
        print(self._colorize(f"ERROR: {message}", 'red'), file=sys.stderr, flush=True)

    def warning(self, message: str):
        if self.enabled:
            print(self._colorize(f"WARNING: {message}", 'yellow'), file=sys.stderr, flush=True)

    def success(self, message: str):
        if self.enabled:
            self(message, level=LogLevel.SUCCESS)

    def drain(self, generator: Iterator[str], prefix: str = ""):
        """
        Report every message a service generator yields and return its value.

        Services yield progress strings and ``return`` their summary; this
        is the command-side counterpart of ``yield from``.
        """
        while True:
            try:
                message = next(generator)
            except StopIteration as stop:
                return stop.value
            self(f"{prefix}{message}")


_progress: Optional[ProgressReporter] = None


def get_progress(enabled: Optional[bool] = None) -> ProgressReporter:
    """
    Get the global progress reporter.

    The PROFILEKIT_PROGRESS environment variable (``0``/``1``) overrides
    auto-detection when ``enabled`` is not given.
    """
    global _progress
    if enabled is None:
        env = os.environ.get('PROFILEKIT_PROGRESS')
        if env in ('0', '1'):
            enabled = env == '1'
    if _progress is None or enabled is not None:
        _progress = ProgressReporter(enabled)
    return _progress

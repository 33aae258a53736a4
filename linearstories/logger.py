#!/usr/bin/env python3
"""
Structured logging for Markdown ↔ Linear story sync.

Provides context-aware logging with sanitization, optional file rotation,
and debug mode.
"""

import os
import sys
import json
import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Any, Optional


LOG_DIR_ENV = 'LINEARSTORIES_LOG_DIR'
SENSITIVE_KEYS = ('key', 'token', 'password', 'secret')


class SyncLogger:
    """Structured logger for import/export runs."""

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        debug: bool = False,
        console_output: bool = True,
        name: str = 'linearstories'
    ):
        """
        Initialize sync logger.

        Args:
            log_dir: Directory for log files (default: $LINEARSTORIES_LOG_DIR, no file if unset)
            debug: Enable debug mode with verbose logging
            console_output: Also output to console (stderr)
            name: Underlying logging.Logger name
        """
        if log_dir is None and os.getenv(LOG_DIR_ENV):
            log_dir = Path(os.environ[LOG_DIR_ENV])

        self.debug_enabled = debug or os.getenv('DEBUG', '').lower() in ('true', '1', 'yes')
        level = logging.DEBUG if self.debug_enabled else logging.INFO

        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.propagate = False
        self.logger.handlers.clear()

        self.log_file: Optional[Path] = None
        if log_dir is not None:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = log_dir / 'linearstories.log'

            # 10MB max, keep 30 backups
            file_handler = logging.handlers.RotatingFileHandler(
                self.log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=30,
                encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(file_handler)

        if console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level)
            console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
            self.logger.addHandler(console_handler)

    def _format_context(self, context: Dict[str, Any]) -> str:
        """Format context dictionary as structured data."""
        if not context:
            return ''

        sanitized = {}
        for key, value in context.items():
            if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
                sanitized[key] = '<REDACTED>'
            else:
                sanitized[key] = value

        return ' | ' + json.dumps(sanitized, separators=(',', ':'), default=str)

    def info(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Log informational message.

        Args:
            message: Log message
            context: Optional context data (dict)
        """
        self.logger.info(message + self._format_context(context or {}))

    def debug(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Log debug message (only if debug mode enabled).

        Args:
            message: Log message
            context: Optional context data (dict)
        """
        if self.debug_enabled:
            self.logger.debug(message + self._format_context(context or {}))

    def warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Log warning message.

        Args:
            message: Log message
            context: Optional context data (dict)
        """
        self.logger.warning(message + self._format_context(context or {}))

    def error(
        self,
        message: str,
        error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log error message with exception details.

        Args:
            message: Log message
            error: Optional exception object
            context: Optional context data (dict)
        """
        msg = message
        if error:
            msg += f" | Error: {type(error).__name__}: {error}"

        msg += self._format_context(context or {})
        self.logger.error(msg, exc_info=error if self.debug_enabled else None)

    def log_story_result(
        self,
        title: str,
        action: str,
        linear_id: Optional[str] = None,
        error: Optional[str] = None
    ) -> None:
        """
        Log the outcome of one story import.

        Args:
            title: Story title
            action: 'created' | 'updated' | 'failed' | 'skipped'
            linear_id: Linear identifier when known
            error: Failure message for 'failed'
        """
        ctx: Dict[str, Any] = {'title': title, 'action': action}
        if linear_id:
            ctx['linear_id'] = linear_id
        if error:
            ctx['error'] = error

        level = logging.ERROR if action == 'failed' else logging.INFO
        self.logger.log(level, f"Story {action}: {title}" + self._format_context(ctx))


# Global logger instance
_logger: Optional[SyncLogger] = None


def get_logger(
    log_dir: Optional[Path] = None,
    debug: bool = False,
    console_output: bool = True
) -> SyncLogger:
    """
    Get or create global logger instance.

    Args:
        log_dir: Directory for log files
        debug: Enable debug mode with verbose logging
        console_output: Also output to console

    Returns:
        SyncLogger instance
    """
    global _logger

    if _logger is None:
        _logger = SyncLogger(
            log_dir=log_dir,
            debug=debug,
            console_output=console_output
        )

    return _logger


def configure_logger(
    log_dir: Optional[Path] = None,
    debug: bool = False,
    console_output: bool = True
) -> SyncLogger:
    """Replace the global logger, e.g. once CLI flags are known."""
    global _logger

    _logger = SyncLogger(log_dir=log_dir, debug=debug, console_output=console_output)
    return _logger

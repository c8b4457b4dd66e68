"""
Logging and Error Handling System

This module provides centralized logging configuration and per-post error
tracking for the Postvault archiver.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from typing import Optional, Dict, Any
import traceback
from pathlib import Path


APP_NAME = "postvault"


class PostvaultLogger:
    """
    Centralized logging system for the Postvault application.

    The application logger is the `postvault` package logger, so every module
    logging through `logging.getLogger(__name__)` lands in the same handlers.
    """

    def __init__(self, log_dir: str = "logs", app_name: str = APP_NAME):
        """
        Initialize the logging system.

        Args:
            log_dir: Directory to store log files
            app_name: Name of the application for log formatting
        """
        self.log_dir = Path(log_dir)
        self.app_name = app_name
        self.loggers: Dict[str, logging.Logger] = {}

        self.log_dir.mkdir(parents=True, exist_ok=True)

    def setup_logger(self, level: int = logging.INFO) -> logging.Logger:
        """
        Set up the main application logger with file and console handlers.

        Args:
            level: Console logging level (default: INFO)

        Returns:
            Configured logger instance
        """
        logger = logging.getLogger(self.app_name)
        logger.setLevel(logging.DEBUG)

        # Prevent duplicate handlers
        if logger.handlers:
            return logger

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )

        log_file = self.log_dir / f"{self.app_name}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)

        error_file = self.log_dir / f"{self.app_name}_errors.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_file,
            maxBytes=5*1024*1024,  # 5MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        logger.addHandler(error_handler)

        self.loggers['main'] = logger
        return logger

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            name: Name of the module/component

        Returns:
            Logger instance for the component
        """
        full_name = f"{self.app_name}.{name}"

        if full_name not in self.loggers:
            self.loggers[full_name] = logging.getLogger(full_name)

        return self.loggers[full_name]

    def log_system_info(self):
        """Log system information for debugging."""
        logger = self.get_logger('system')

        logger.info("=== Postvault Started ===")
        logger.info(f"Python version: {sys.version}")
        logger.info(f"Platform: {sys.platform}")
        logger.info(f"Working directory: {os.getcwd()}")
        logger.info(f"Log directory: {self.log_dir.absolute()}")


class ErrorTracker:
    """
    Tracks errors that failed individual posts during a run.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.errors: list = []
        self.warnings: list = []

    def log_error(self,
                  error: Exception,
                  stage: str = None,
                  post_id: str = None,
                  additional_info: Dict[str, Any] = None) -> str:
        """
        Log an error with the failing stage and post.

        Args:
            error: The exception that occurred
            stage: Pipeline stage where the error occurred
            post_id: Post being processed when the error occurred
            additional_info: Additional information about the error

        Returns:
            Error ID for tracking
        """
        error_id = f"ERR_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.errors):03d}"

        error_data = {
            'id': error_id,
            'timestamp': datetime.now(),
            'type': type(error).__name__,
            'message': str(error),
            'stage': stage,
            'post_id': post_id,
            'traceback': ''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            'additional_info': additional_info or {}
        }

        self.errors.append(error_data)

        log_message = f"[{error_id}] {error_data['type']}: {error_data['message']}"
        if stage:
            log_message += f" (Stage: {stage})"
        if post_id:
            log_message += f" (Post: {post_id})"

        self.logger.error(log_message)
        self.logger.debug(f"[{error_id}] Full traceback:\n{error_data['traceback']}")

        return error_id

    def log_warning(self,
                    message: str,
                    stage: str = None,
                    post_id: str = None) -> str:
        """
        Log a warning with the stage and post it concerns.

        Returns:
            Warning ID for tracking
        """
        warning_id = f"WARN_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.warnings):03d}"

        self.warnings.append({
            'id': warning_id,
            'timestamp': datetime.now(),
            'message': message,
            'stage': stage,
            'post_id': post_id
        })

        log_message = f"[{warning_id}] {message}"
        if stage:
            log_message += f" (Stage: {stage})"
        if post_id:
            log_message += f" (Post: {post_id})"

        self.logger.warning(log_message)

        return warning_id

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all errors and warnings.

        Returns:
            Dictionary with error statistics and details
        """
        return {
            'total_errors': len(self.errors),
            'total_warnings': len(self.warnings),
            'error_types': self._count_error_types(),
            'failed_posts': [e['post_id'] for e in self.errors if e['post_id']],
        }

    def _count_error_types(self) -> Dict[str, int]:
        """Count errors by type."""
        type_counts = {}
        for error in self.errors:
            error_type = error['type']
            type_counts[error_type] = type_counts.get(error_type, 0) + 1
        return type_counts

    def save_error_report(self, output_path: str):
        """
        Save a detailed error report to a file.

        Args:
            output_path: Path where the report should be saved
        """
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write("POSTVAULT ERROR REPORT\n")
                f.write("=" * 50 + "\n\n")
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write(f"Total Errors: {len(self.errors)}\n")
                f.write(f"Total Warnings: {len(self.warnings)}\n\n")

                if self.errors:
                    f.write("ERRORS:\n")
                    f.write("-" * 30 + "\n")
                    for error in self.errors:
                        f.write(f"\n[{error['id']}] {error['timestamp']}\n")
                        f.write(f"Type: {error['type']}\n")
                        f.write(f"Message: {error['message']}\n")
                        if error['stage']:
                            f.write(f"Stage: {error['stage']}\n")
                        if error['post_id']:
                            f.write(f"Post: {error['post_id']}\n")
                        f.write(f"Traceback:\n{error['traceback']}\n")
                        f.write("-" * 50 + "\n")

                if self.warnings:
                    f.write("\nWARNINGS:\n")
                    f.write("-" * 30 + "\n")
                    for warning in self.warnings:
                        f.write(f"\n[{warning['id']}] {warning['timestamp']}\n")
                        f.write(f"Message: {warning['message']}\n")
                        if warning['stage']:
                            f.write(f"Stage: {warning['stage']}\n")
                        if warning['post_id']:
                            f.write(f"Post: {warning['post_id']}\n")
                        f.write("-" * 30 + "\n")

            self.logger.info(f"Error report saved to: {output_path}")

        except OSError as e:
            self.logger.error(f"Failed to save error report: {e}")


# Global logger instance
_logger_instance: Optional[PostvaultLogger] = None


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Name of the module/component (optional)

    Returns:
        Logger instance
    """
    global _logger_instance

    if _logger_instance is None:
        return logging.getLogger(f"{APP_NAME}.{name}" if name else APP_NAME)

    if name:
        return _logger_instance.get_logger(name)
    return _logger_instance.loggers.get('main') or logging.getLogger(APP_NAME)


def initialize_logging(log_dir: str = "logs", level: int = logging.INFO):
    """
    Initialize the global logging system.

    Args:
        log_dir: Directory for log files
        level: Console logging level
    """
    global _logger_instance
    _logger_instance = PostvaultLogger(log_dir)
    _logger_instance.setup_logger(level)
    _logger_instance.log_system_info()


def create_error_tracker(logger_name: str = None) -> ErrorTracker:
    """
    Create an error tracker instance.

    Args:
        logger_name: Name of the logger to use

    Returns:
        ErrorTracker instance
    """
    return ErrorTracker(get_logger(logger_name))

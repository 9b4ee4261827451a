"""
Structured Logging Module for Chiffres-Z3

Provides differentiated logging for the three layers of the solver:
- ENCODER: formulas produced by the transition encoder (very verbose)
- Z3: per-depth solver checks and their outcomes
- SYSTEM: parameters, phase changes and the final status

Features:
- Color-coded terminal output for quick visual parsing
- JSON mode for structured log aggregation
- ENCODER records are hidden unless formula logging is switched on
"""

import logging
import json
import sys
from enum import Enum
from datetime import datetime


class LogCategory(Enum):
    """
    Log categories for filtering and visual differentiation.

    Each category maps to a prefix tag and a terminal color.
    """
    ENCODER = "ENCODER"  # Encoded transition/goal formulas
    Z3 = "Z3"            # Solver checks, depth outcomes
    SYSTEM = "SYSTEM"    # Parameters, phases, final status


# ANSI color codes for terminal output
COLORS = {
    LogCategory.ENCODER: "\033[94m",  # Blue - for formulas
    LogCategory.Z3: "\033[93m",       # Yellow - for solver output
    LogCategory.SYSTEM: "\033[92m",   # Green - for system status
    "RESET": "\033[0m",
    "ERROR": "\033[91m",
    "WARNING": "\033[95m",
}


class StructuredFormatter(logging.Formatter):
    """
    Formatter supporting both human-readable and JSON output.

    In terminal mode (default):
        [SYSTEM] 2024-01-15 10:30:45 | INFO    | Exact search started
        [Z3] 2024-01-15 10:30:46 | INFO    | Depth 1: sat

    In JSON mode:
        {"timestamp": "...", "category": "Z3", "level": "INFO", "message": "..."}
    """

    def __init__(self, json_mode: bool = False, use_colors: bool = True):
        super().__init__()
        self.json_mode = json_mode
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        category = getattr(record, 'category', LogCategory.SYSTEM)
        if isinstance(category, str):
            category = LogCategory[category]

        timestamp = datetime.now().isoformat(timespec='seconds')

        if self.json_mode:
            log_entry = {
                "timestamp": timestamp,
                "category": category.value,
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if hasattr(record, 'extra_data'):
                log_entry["data"] = record.extra_data
            return json.dumps(log_entry)

        level = record.levelname
        message = record.getMessage()

        if self.use_colors:
            cat_color = COLORS.get(category, "")
            reset = COLORS["RESET"]

            if level == "ERROR":
                level_color = COLORS["ERROR"]
            elif level == "WARNING":
                level_color = COLORS["WARNING"]
            else:
                level_color = ""

            return (
                f"{cat_color}[{category.value}]{reset} "
                f"{timestamp} | {level_color}{level:7}{reset} | {message}"
            )

        return f"[{category.value}] {timestamp} | {level:7} | {message}"


class CategoryAdapter(logging.LoggerAdapter):
    """
    Logger adapter that injects the category into log records.

    Usage:
        logger = get_logger(__name__)
        logger.info("Exact search started", category=LogCategory.SYSTEM)
        logger.debug("transition(0) = ...", category=LogCategory.ENCODER)
    """

    def process(self, msg: str, kwargs: dict) -> tuple:
        category = kwargs.pop('category', LogCategory.SYSTEM)
        extra = kwargs.get('extra', {})
        extra['category'] = category
        kwargs['extra'] = extra
        return msg, kwargs


class FormulaFilter(logging.Filter):
    """
    Filter suppressing ENCODER category records.

    Encoded formulas grow quadratically with the depth and drown out
    everything else, so they are only shown on request.
    """

    def __init__(self, show_formulas: bool = False):
        super().__init__()
        self.show_formulas = show_formulas

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.show_formulas:
            category = getattr(record, 'category', None)
            if category == LogCategory.ENCODER:
                return False
        return True


# Module-level logger cache
_loggers: dict[str, CategoryAdapter] = {}

# Global configuration (set by configure_logging)
_json_mode: bool = False
_show_formulas: bool = False
_log_level: str = "INFO"


def configure_logging(
    json_mode: bool = False,
    show_formulas: bool = False,
    log_level: str = "INFO"
) -> None:
    """
    Configure global logging settings.

    Called once at application startup, after settings overrides are
    applied. Loggers created before the call are reconfigured in place.

    Args:
        json_mode: If True, output logs in JSON format on stderr
        show_formulas: If True, let ENCODER category records through
        log_level: Global minimum log level (DEBUG, INFO, WARNING, ERROR)
    """
    global _json_mode, _show_formulas, _log_level
    _json_mode = json_mode
    _show_formulas = show_formulas
    _log_level = log_level.upper()

    for logger_adapter in _loggers.values():
        _configure_logger(logger_adapter.logger)


def _configure_logger(logger: logging.Logger) -> None:
    """Apply current global configuration to a logger."""
    logger.setLevel(getattr(logging, _log_level))

    logger.handlers.clear()
    logger.filters.clear()

    # JSON logs go to stderr so stdout carries only the result document
    handler = logging.StreamHandler(sys.stderr if _json_mode else sys.stdout)
    handler.setFormatter(StructuredFormatter(json_mode=_json_mode))
    logger.addHandler(handler)
    logger.addFilter(FormulaFilter(show_formulas=_show_formulas))

    logger.propagate = False


def get_logger(name: str) -> CategoryAdapter:
    """
    Get a configured logger instance for the given module name.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        CategoryAdapter wrapping a configured Logger

    Example:
        logger = get_logger(__name__)
        logger.info("Depth 3: unsat", category=LogCategory.Z3,
                    extra={'extra_data': {'depth': 3}})
    """
    if name not in _loggers:
        logger = logging.getLogger(f"chiffres_z3.{name}")
        _configure_logger(logger)
        _loggers[name] = CategoryAdapter(logger, {})

    return _loggers[name]

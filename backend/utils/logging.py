"""
Structured logging setup using structlog.

This module configures structured logging for the application with JSON output
in production and human-readable format in development.
"""

import logging
import sys
from typing import Any, Optional

import structlog


def setup_logging(level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    # Configure stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    # Configure structlog
    structlog.configure(
        processors=[
            # Add log level and timestamp
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            # Use JSON in production, pretty print in development
            structlog.processors.JSONRenderer() if level.upper() == "INFO" else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (optional)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def log_migration_event(step: str, table: str = "servers", **kwargs) -> None:
    """
    Log a schema migration step with structured data.

    Args:
        step: Migration step (created, unchanged, column_added, rebuild_*)
        table: Table being migrated
        **kwargs: Additional context
    """
    logger = get_logger("migration")
    logger.info(
        f"Migration {step}",
        step=step,
        table=table,
        **kwargs
    )


def log_client_config_event(action: str, path: Optional[str] = None, **kwargs) -> None:
    """
    Log a client configuration file event with structured data.

    Args:
        action: What happened to the file (read, read_fallback, written)
        path: Client configuration file path (optional)
        **kwargs: Additional context
    """
    logger = get_logger("client_config")
    logger.info(
        f"Client config {action}",
        action=action,
        path=path,
        **kwargs
    )


def log_import_event(outcome: str, imported_count: int = None, error_count: int = None, **kwargs) -> None:
    """
    Log a server import event with structured data.

    Args:
        outcome: Import outcome (bulk_completed, bulk_rejected, promoted)
        imported_count: Number of servers added (optional)
        error_count: Number of entries rejected (optional)
        **kwargs: Additional context
    """
    logger = get_logger("import")
    logger.info(
        f"Import {outcome}",
        outcome=outcome,
        imported_count=imported_count,
        error_count=error_count,
        **kwargs
    )

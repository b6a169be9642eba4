"""Structured logging configuration for safety net.

Uses structlog for structured, context-rich logging that supports
both human-readable console output and machine-readable JSON format.
All output goes to stderr so hook responses on stdout stay clean.
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from safety_net.config import SafetyNetSettings


def configure_logging(settings: "SafetyNetSettings | None" = None) -> None:
    """Configure structured logging based on settings.

    Args:
        settings: Loaded settings. If None, uses defaults.
    """
    log_level = logging.WARNING
    log_format = "console"

    if settings is not None:
        log_level = getattr(logging, settings.log_level.upper(), logging.WARNING)
        log_format = settings.log_format

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_context(**kwargs: object) -> None:
    """Bind context variables to all subsequent log calls in the current context.

    Example:
        bind_context(session_id="abc123", cwd="/work")
        logger.warning("audit_write_failed")  # Includes session_id and cwd

    Args:
        **kwargs: Key-value pairs to bind to logging context
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


class Loggers:
    """Pre-configured logger instances for safety net components."""

    @staticmethod
    def analyzer() -> structlog.stdlib.BoundLogger:
        """Logger for the analysis pipeline."""
        return get_logger("safety_net.analyzer")

    @staticmethod
    def rules() -> structlog.stdlib.BoundLogger:
        """Logger for rule dispatch and providers."""
        return get_logger("safety_net.rules")

    @staticmethod
    def config() -> structlog.stdlib.BoundLogger:
        """Logger for configuration."""
        return get_logger("safety_net.config")

    @staticmethod
    def audit() -> structlog.stdlib.BoundLogger:
        """Logger for the audit sink."""
        return get_logger("safety_net.audit")

    @staticmethod
    def adapters() -> structlog.stdlib.BoundLogger:
        """Logger for host adapters."""
        return get_logger("safety_net.adapters")

    @staticmethod
    def cli() -> structlog.stdlib.BoundLogger:
        """Logger for the command-line entry point."""
        return get_logger("safety_net.cli")

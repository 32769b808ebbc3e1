"""
Structured logging for the block designer converters.

Thin structlog wrapper that gives every component a named logger carrying a
base context, plus an ``operation_context`` that times conversions and logs failures.
"""

import logging
import sys
import time
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Callable, Dict, Iterator, List, Optional

import structlog


class ContextKeys:
    """Standard context keys for structured logging."""

    COMPONENT = "component"
    OPERATION = "operation"
    DURATION_MS = "duration_ms"
    ERROR_TYPE = "error_type"
    DIRECTION = "direction"
    INPUT_LENGTH = "input_length"
    OUTPUT_LENGTH = "output_length"


class StructuredLogger:
    """
    Structured logger bound to one component.

    Context passed through ``extra_context`` is merged over the base context,
    and ``lazy_context`` callables are only evaluated when the level is enabled.
    """

    def __init__(
        self,
        component: str,
        *,
        logger_name: Optional[str] = None,
        base_context: Optional[Dict[str, Any]] = None,
    ):
        self.component = component
        self.logger_name = logger_name or f"blockxml.{component}"
        self.base_context = dict(base_context or {})
        self.base_context[ContextKeys.COMPONENT] = component
        self._logger = structlog.get_logger(self.logger_name)

    def _enabled_for(self, level: str) -> bool:
        numeric = getattr(logging, level.upper(), logging.INFO)
        return logging.getLogger(self.logger_name).isEnabledFor(numeric)

    def _log_with_context(
        self,
        level: str,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
        lazy_context: Optional[Callable[[], Dict[str, Any]]] = None,
    ) -> None:
        if not self._enabled_for(level):
            return

        context = self.base_context.copy()
        if extra_context:
            context.update(extra_context)
        if lazy_context:
            context.update(lazy_context())
        if exception is not None:
            context[ContextKeys.ERROR_TYPE] = type(exception).__name__
            context["error_message"] = str(exception)

        getattr(self._logger, level.lower())(message, **context)

    def debug(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        lazy_context: Optional[Callable[[], Dict[str, Any]]] = None,
    ) -> None:
        """Log debug message."""
        self._log_with_context(
            "DEBUG", message, extra_context=extra_context, lazy_context=lazy_context
        )

    def info(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        lazy_context: Optional[Callable[[], Dict[str, Any]]] = None,
    ) -> None:
        """Log info message."""
        self._log_with_context(
            "INFO", message, extra_context=extra_context, lazy_context=lazy_context
        )

    def warning(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        """Log warning message."""
        self._log_with_context(
            "WARNING", message, extra_context=extra_context, exception=exception
        )

    def error(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        """Log error message."""
        self._log_with_context(
            "ERROR", message, extra_context=extra_context, exception=exception
        )

    def with_context(self, **context: Any) -> "ContextualLogger":
        """Return a logger that adds ``context`` to every message."""
        return ContextualLogger(self, context)

    @contextmanager
    def operation_context(
        self, operation: str, **additional_context: Any
    ) -> Iterator["ContextualLogger"]:
        """
        Time an operation and log its outcome.

        Failures are logged with the exception details and re-raised unchanged.
        """
        start_time = time.perf_counter()
        contextual_logger = self.with_context(
            **{ContextKeys.OPERATION: operation, **additional_context}
        )

        try:
            yield contextual_logger
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            contextual_logger.warning(
                f"Operation '{operation}' failed",
                extra_context={ContextKeys.DURATION_MS: round(duration_ms, 2)},
                exception=e,
            )
            raise
        else:
            duration_ms = (time.perf_counter() - start_time) * 1000
            contextual_logger.debug(
                f"Operation '{operation}' completed",
                extra_context={ContextKeys.DURATION_MS: round(duration_ms, 2)},
            )


class ContextualLogger:
    """Logger wrapper that adds fixed context to all log messages."""

    def __init__(self, base_logger: StructuredLogger, context: Dict[str, Any]):
        self.base_logger = base_logger
        self.context = context

    def _merged(self, extra_context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = self.context.copy()
        if extra_context:
            merged.update(extra_context)
        return merged

    def debug(self, message: str, *, extra_context: Optional[Dict[str, Any]] = None) -> None:
        self.base_logger.debug(message, extra_context=self._merged(extra_context))

    def info(self, message: str, *, extra_context: Optional[Dict[str, Any]] = None) -> None:
        self.base_logger.info(message, extra_context=self._merged(extra_context))

    def warning(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        self.base_logger.warning(
            message, extra_context=self._merged(extra_context), exception=exception
        )

    def error(
        self,
        message: str,
        *,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        self.base_logger.error(
            message, extra_context=self._merged(extra_context), exception=exception
        )

    def with_context(self, **additional_context: Any) -> "ContextualLogger":
        return ContextualLogger(self.base_logger, {**self.context, **additional_context})


class LoggerFactory:
    """
    Centralized factory for component loggers.

    ``configure_logging`` is optional: without it structlog's defaults apply
    and the converters stay quiet below WARNING.
    """

    _loggers: Dict[str, StructuredLogger] = {}
    _configured: bool = False

    @classmethod
    def configure_logging(
        cls,
        level: str = "WARNING",
        format_type: str = "structured",
    ) -> None:
        """
        Configure global logging settings.

        Args:
            level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            format_type: Log format (structured, console, json)
        """
        filter_level = getattr(logging, level.upper())

        processors: List[Any] = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ]
        if format_type == "json":
            processors.append(structlog.processors.JSONRenderer())
        elif format_type == "console":
            processors.append(structlog.dev.ConsoleRenderer(colors=False))
        else:
            processors.append(structlog.processors.KeyValueRenderer())

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(filter_level),
            # sys.stderr is looked up per logger, never captured once
            logger_factory=lambda *args: structlog.WriteLogger(sys.stderr),
            cache_logger_on_first_use=False,
        )
        logging.getLogger("blockxml").setLevel(filter_level)
        cls._configured = True

    @classmethod
    def get_logger(
        cls,
        component: str,
        *,
        logger_name: Optional[str] = None,
        base_context: Optional[Dict[str, Any]] = None,
    ) -> StructuredLogger:
        """Get or create the logger for ``component``."""
        cache_key = f"{component}:{logger_name or component}"

        if cache_key not in cls._loggers:
            cls._loggers[cache_key] = StructuredLogger(
                component,
                logger_name=logger_name,
                base_context=base_context,
            )

        return cls._loggers[cache_key]


@lru_cache()
def get_cli_logger() -> StructuredLogger:
    """Get CLI component logger."""
    return LoggerFactory.get_logger("cli")

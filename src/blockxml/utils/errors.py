"""Unified error handling for the block designer with structured context."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, NoReturn, Optional

import typer

from blockxml.utils.logging import StructuredLogger, get_cli_logger


class ErrorSeverity(str, Enum):
    """Error severity levels for classification and handling."""

    WARNING = "warning"
    ERROR = "error"


class ErrorCategory(str, Enum):
    """Error categories for structured handling."""

    VALIDATION = "validation"
    CONVERSION = "conversion"
    CONFIGURATION = "configuration"
    FILESYSTEM = "filesystem"
    RUNTIME = "runtime"


class BlockXmlError(Exception):
    """
    Base exception for all converter operations with structured context.

    Every error carries a single printable message; the structured context is
    for logs only and callers never need to inspect it to recover.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.RUNTIME,
        operation: Optional[str] = None,
        component: Optional[str] = None,
        user_message: Optional[str] = None,
        help_text: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        """
        Initialize structured error.

        Args:
            message: Error message shown to the user
            context: Additional context data for debugging
            severity: Error severity level
            category: Error category for classification
            operation: Operation that failed (e.g., "serialize", "parse")
            component: Component where error occurred (e.g., "parser", "cli")
            user_message: User-friendly message when it differs from ``message``
            help_text: Suggested resolution
            error_code: Unique error code for documentation reference
        """
        super().__init__(message)

        self.message = message
        self.context = context or {}
        self.severity = severity
        self.category = category
        self.operation = operation
        self.component = component
        self.user_message = user_message or message
        self.help_text = help_text
        self.error_code = error_code
        self.exit_code: Optional[int] = None
        self.timestamp = datetime.now(timezone.utc)

        self.context.update(
            {
                "severity": self.severity.value,
                "category": self.category.value,
            }
        )
        if self.operation:
            self.context["operation"] = self.operation
        if self.component:
            self.context["component"] = self.component

    def __str__(self) -> str:
        return self.message

    def get_user_message(self) -> str:
        """Get user-friendly error message."""
        return self.user_message

    def get_context_for_logging(self) -> Dict[str, Any]:
        """Get context information for structured logging."""
        log_context = self.context.copy()
        log_context.update(
            {
                "error_type": self.__class__.__name__,
                "error_message": self.message,
                "timestamp": self.timestamp.isoformat(),
            }
        )
        if self.error_code:
            log_context["error_code"] = self.error_code
        if self.help_text:
            log_context["help_text"] = self.help_text
        return log_context

    def with_context(self, **additional_context: Any) -> "BlockXmlError":
        """Add additional context to existing error."""
        self.context.update(additional_context)
        return self


class _SyntaxErrorBase(BlockXmlError):
    """Shared shape for text that could not be parsed at all.

    Carries warning severity; the other buffer keeps its last good value.
    """

    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        error_code: str,
        help_text: str,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            severity=kwargs.pop("severity", ErrorSeverity.WARNING),
            component=kwargs.pop("component", "validators"),
            operation=kwargs.pop("operation", "parse"),
            help_text=help_text,
            error_code=error_code,
            **kwargs,
        )
        self.line = line
        self.column = column
        if line is not None:
            self.context["line"] = line
        if column is not None:
            self.context["column"] = column


class JsonSyntaxError(_SyntaxErrorBase):
    """Malformed JSON text."""

    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            line=line,
            column=column,
            error_code="JSN001",
            help_text="Fix the JSON syntax; the XML side was left unchanged",
            **kwargs,
        )


class XmlSyntaxError(_SyntaxErrorBase):
    """Malformed XML text (unbalanced tags, invalid characters, ...)."""

    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            line=line,
            column=column,
            error_code="XML001",
            help_text="Fix the XML syntax; the JSON side was left unchanged",
            **kwargs,
        )


class ConversionError(BlockXmlError):
    """A well-formed input that the semantic mapping cannot translate."""

    def __init__(
        self,
        message: str,
        *,
        node_type: Optional[str] = None,
        path: Optional[str] = None,
        operation: str = "convert",
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONVERSION,
            operation=operation,
            component=kwargs.pop("component", "converters"),
            help_text=kwargs.pop(
                "help_text", "Every node and mark needs a non-empty string 'type'"
            ),
            error_code="CNV001",
            **kwargs,
        )
        self.node_type = node_type
        self.path = path
        if node_type is not None:
            self.context["node_type"] = node_type
        if path is not None:
            self.context["path"] = path


class ConfigurationError(BlockXmlError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            component="config",
            category=ErrorCategory.CONFIGURATION,
            help_text=kwargs.pop(
                "help_text", "Check the BLOCKXML_* environment variables"
            ),
            error_code="CFG001",
            **kwargs,
        )
        self.config_key = config_key
        if config_key:
            self.context["config_key"] = config_key


class CLIError(BlockXmlError):
    """CLI-specific errors."""

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        exit_code: int = 1,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            component="cli",
            category=kwargs.pop("category", ErrorCategory.RUNTIME),
            **kwargs,
        )
        self.exit_code = exit_code
        if command:
            self.context["command"] = command


class CLIErrorHandler:
    """Turns exceptions into a user message on stderr and a typer exit."""

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self._logger = logger

    @property
    def logger(self) -> StructuredLogger:
        return self._logger or get_cli_logger()

    def handle_error(self, error: Exception, operation: str = "operation") -> NoReturn:
        """
        Report ``error`` and exit.

        Raises:
            typer.Exit: Always exits with the error's exit code (default 1)
        """
        exit_code = 1

        if isinstance(error, BlockXmlError):
            exit_code = error.exit_code or 1
            self.logger.warning(
                f"CLI {operation} failed", extra_context=error.get_context_for_logging()
            )
            typer.echo(f"Error: {error.get_user_message()}", err=True)
            if error.help_text:
                typer.echo(f"Hint: {error.help_text}", err=True)
        else:
            self.logger.error(f"CLI {operation} failed", exception=error)
            typer.echo(f"Error: failed to {operation}: {error}", err=True)

        raise typer.Exit(code=exit_code)


cli_error_handler = CLIErrorHandler()

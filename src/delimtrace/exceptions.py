"""Custom exceptions for delimtrace."""

from pathlib import Path


class DelimTraceError(Exception):
    """Base exception for all delimtrace errors."""

    pass


class InvalidArgumentError(DelimTraceError, ValueError):
    """Raised when a listener setting receives an unusable value."""

    def __init__(
        self,
        message: str,
        *,
        param_name: str = "",
    ) -> None:
        super().__init__(message)
        self.param_name = param_name


class ConfigError(DelimTraceError, ValueError):
    """Raised when listener configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_path: Path | None = None,
        field: str = "",
    ) -> None:
        super().__init__(message)
        self.config_path = config_path
        self.field = field

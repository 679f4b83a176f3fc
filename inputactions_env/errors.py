"""
Error types for the environment daemon.

Domain absence (no active window, nothing under the pointer) is never an
error; it is published as null/false. These exceptions cover configuration,
host IPC, bus setup and programming errors only.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """
    Error codes for the environment daemon.

    Ranges:
    - 1100-1199: Configuration errors
    - 1200-1299: Window manager adapter errors
    - 1300-1399: Bus errors
    - 1400-1499: Engine errors
    """

    # Configuration errors (1100-1199)
    CONFIG_LOAD_FAILED = 1100
    INVALID_CONFIG = 1101
    UNKNOWN_ADAPTER = 1102

    # Window manager adapter errors (1200-1299)
    ADAPTER_CONNECT_FAILED = 1200
    ADAPTER_QUERY_FAILED = 1201
    ADAPTER_NOT_CONNECTED = 1202

    # Bus errors (1300-1399)
    BUS_UNAVAILABLE = 1300
    BUS_SUBSCRIBE_FAILED = 1301

    # Engine errors (1400-1499)
    ENGINE_SETUP_FAILED = 1400
    UNKNOWN_ATTRIBUTE = 1401


class EnvironmentDaemonError(Exception):
    """Base exception for environment daemon errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize daemon error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            suggestion: Suggested recovery action
            context: Additional context for debugging
        """
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for structured logging.

        Returns:
            Error dictionary with code, message, suggestion, and context
        """
        result = {
            "code": self.code.value,
            "message": self.message
        }

        if self.suggestion:
            result["suggestion"] = self.suggestion

        if self.context:
            result["context"] = self.context

        return result


class ConfigLoadError(EnvironmentDaemonError):
    """Configuration loading error."""

    def __init__(self, file_path: str, reason: str):
        """
        Initialize configuration load error.

        Args:
            file_path: Path to configuration file
            reason: Reason for load failure
        """
        super().__init__(
            code=ErrorCode.CONFIG_LOAD_FAILED,
            message=f"Failed to load configuration from {file_path}: {reason}",
            suggestion="Check file syntax and permissions",
            context={"file_path": file_path, "reason": reason}
        )


class UnknownAdapterError(EnvironmentDaemonError):
    """Requested or detected window manager adapter does not exist."""

    def __init__(self, name: str):
        super().__init__(
            code=ErrorCode.UNKNOWN_ADAPTER,
            message=f"No window manager adapter for '{name}'",
            suggestion="Use --adapter i3 or --adapter hyprland",
            context={"adapter": name}
        )


class AdapterError(EnvironmentDaemonError):
    """Window manager IPC communication error."""

    def __init__(self, operation: str, reason: str, code: ErrorCode = ErrorCode.ADAPTER_QUERY_FAILED):
        """
        Initialize adapter error.

        Args:
            operation: IPC operation that failed
            reason: Reason for failure
            code: Specific adapter error code
        """
        super().__init__(
            code=code,
            message=f"Window manager {operation} failed: {reason}",
            suggestion="Ensure the compositor is running and its IPC socket is accessible",
            context={"operation": operation, "reason": reason}
        )


class BusError(EnvironmentDaemonError):
    """Session bus setup error."""

    def __init__(self, operation: str, reason: str, code: ErrorCode = ErrorCode.BUS_UNAVAILABLE):
        super().__init__(
            code=code,
            message=f"D-Bus {operation} failed: {reason}",
            suggestion="Ensure a session bus is running (DBUS_SESSION_BUS_ADDRESS)",
            context={"operation": operation, "reason": reason}
        )


class EngineSetupError(EnvironmentDaemonError):
    """Engine could not be enabled; nothing was left running."""

    def __init__(self, step: str, cause: Exception):
        super().__init__(
            code=ErrorCode.ENGINE_SETUP_FAILED,
            message=f"Engine setup failed during {step}: {cause}",
            context={"step": step, "cause": type(cause).__name__}
        )


class UnknownAttributeError(EnvironmentDaemonError, KeyError):
    """Attribute key not present in the registry.

    Call sites build keys from constants or from the registry itself, so this
    always indicates a programming error.
    """

    def __init__(self, key: str):
        super().__init__(
            code=ErrorCode.UNKNOWN_ATTRIBUTE,
            message=f"Unknown environment attribute: {key!r}",
            context={"key": key}
        )

"""Exceptions module."""

from __future__ import annotations

from typing import Optional

from .hci_types import status_name


class HCIToolError(Exception):
    """Base class for every error raised by hcitool."""


class CommandError(HCIToolError):
    """Raised when the command line cannot be turned into a command."""


class UnknownCommand(CommandError):
    """Raised when the command name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown command '{name}'")


class MissingOption(CommandError):
    """Raised when a required option or its value is absent."""

    def __init__(self, option: str):
        self.option = option
        super().__init__(f"Missing value for option '--{option}'")


class InvalidOptionValue(CommandError):
    """Raised when an option value fails to parse or validate."""

    def __init__(
        self, option: str, value: str, reason: Optional[str] = None
    ):
        self.option = option
        self.value = value
        self.reason = reason
        message = f"Invalid value '{value}' for option '--{option}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnknownOption(CommandError):
    """Raised in strict mode when an option is not declared by a command."""

    def __init__(self, command: str, option: str):
        self.command = command
        self.option = option
        if option:
            message = f"Unknown option '--{option}' for command '{command}'"
        else:
            message = f"Unexpected positional value for command '{command}'"
        super().__init__(message)


class ControllerError(HCIToolError):
    """Base class for failures reported by the controller side."""


class ControllerUnavailable(ControllerError):
    """Raised when no controller implementation can be loaded."""


class ControllerOperationFailed(ControllerError):
    """Raised when a controller call fails at the transport level."""


class ControllerStatusError(ControllerError):
    """Raised when the controller answers with a non-success status."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        self.status_name = status_name(status)
        super().__init__(
            message or f"Controller reported status: {self.status_name}"
        )

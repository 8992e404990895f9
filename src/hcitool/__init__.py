"""hcitool: issue HCI commands to a local Bluetooth controller."""

from .command_executor import CommandExecutor
from .commands_model import Command, CommandRecord
from .controller import DryRunController, HostControllerInterface
from .registry import COMMAND_REGISTRY, CommandRegistry, parse_command

__all__ = [
    "COMMAND_REGISTRY",
    "Command",
    "CommandExecutor",
    "CommandRecord",
    "CommandRegistry",
    "DryRunController",
    "HostControllerInterface",
    "parse_command",
]

"""Registry mapping command names onto their command model and builder."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from types import MappingProxyType
from typing import Callable, Dict, Iterator, Mapping, Optional, Sequence

from .builder import build_command
from .commands_model import COMMAND_TYPES, Command, HCICommand
from .exception import UnknownCommand
from .options import Parameter
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

Builder = Callable[..., HCICommand]


@dataclass(frozen=True)
class RegistryEntry:
    """Command kind registered under one name."""

    name: str
    command_type: type
    builder: Builder

    @property
    def kind(self) -> str:
        return self.command_type.command_name


class CommandRegistry:
    """Name to builder map that becomes read-only once frozen."""

    def __init__(self) -> None:
        self._entries: Dict[str, RegistryEntry] = {}
        self._view: Optional[Mapping[str, RegistryEntry]] = None

    @property
    def ready(self) -> bool:
        return self._view is not None

    def register(
        self,
        command_type: type,
        builder: Optional[Builder] = None,
    ) -> None:
        """Register ``command_type`` under its name and aliases."""
        if self.ready:
            raise RuntimeError("Command registry is frozen")
        if builder is None:
            builder = partial(build_command, command_type)
        for name in (command_type.command_name, *command_type.aliases):
            key = name.lower()
            if key in self._entries:
                raise ValueError(f"Command name '{key}' already registered")
            self._entries[key] = RegistryEntry(key, command_type, builder)

    def freeze(self) -> None:
        """Finish initialization; later registrations are rejected."""
        if self._view is None:
            self._view = MappingProxyType(dict(self._entries))

    @property
    def entries(self) -> Mapping[str, RegistryEntry]:
        if self._view is None:
            raise RuntimeError("Command registry is not initialized")
        return self._view

    def lookup(self, name: str) -> RegistryEntry:
        entry = self.entries.get(name.lower())
        if entry is None:
            raise UnknownCommand(name)
        return entry

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(self.entries.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self.entries

    def build(
        self,
        name: str,
        parameters: Sequence[Parameter],
        strict: bool = True,
    ) -> Command:
        """Build the command registered under ``name``."""
        entry = self.lookup(name)
        return entry.builder(parameters, command_name=entry.name, strict=strict)

    def parse(self, arguments: Sequence[str], strict: bool = True) -> Command:
        """Turn a full argument list (name first) into a command."""
        name, parameters = tokenize(arguments)
        command = self.build(name, parameters, strict=strict)
        logger.debug("Parsed %s into %r", name, command)
        return command


def _create_default_registry() -> CommandRegistry:
    registry = CommandRegistry()
    for command_type in COMMAND_TYPES:
        registry.register(command_type)
    registry.freeze()
    return registry


COMMAND_REGISTRY = _create_default_registry()


def parse_command(arguments: Sequence[str], strict: bool = True) -> Command:
    """Parse ``arguments`` with the process-wide registry."""
    return COMMAND_REGISTRY.parse(arguments, strict=strict)

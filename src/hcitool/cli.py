"""hcitool CLI entrypoint."""

from __future__ import annotations

import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing_extensions import Annotated

from .command_executor import CommandExecutor
from .config import (
    CONTROLLER_ENV,
    DRY_RUN_ENV,
    STRICT_OPTIONS_ENV,
    get_env,
    get_env_bool,
    get_log_level,
)
from .controller import resolve_controller
from .exception import CommandError, ControllerUnavailable
from .registry import COMMAND_REGISTRY, CommandRegistry

app = typer.Typer(add_completion=False)

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

EXIT_CONTROLLER_ERROR = 1
EXIT_USAGE_ERROR = 2


def _configure_logging(level_name: Optional[str]) -> None:
    """Configure root logging once, honoring ``HCITOOL_LOG_LEVEL``."""
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            raise typer.BadParameter(
                f"Unknown log level '{level_name}'", param_hint="--log-level"
            )
    else:
        level = get_log_level()
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
        )
    logging.getLogger("hcitool").setLevel(level)


def _print_commands(registry: CommandRegistry) -> None:
    """Render the registered commands and their options."""
    table = Table()
    table.add_column("Command", no_wrap=True)
    table.add_column("Aliases")
    table.add_column("Options")
    table.add_column("Description")
    seen = set()
    for entry in registry:
        command_type = entry.command_type
        if command_type in seen:
            continue
        seen.add(command_type)
        options = " ".join(
            f"--{spec.name}" if spec.required else f"[--{spec.name}]"
            for spec in command_type.options
        )
        table.add_row(
            command_type.command_name,
            ", ".join(command_type.aliases),
            escape(options),
            command_type.description,
        )
    console.print(table)


@app.command(
    context_settings={
        "allow_interspersed_args": False,
        "ignore_unknown_options": True,
    }
)
def main(
    arguments: Annotated[
        Optional[List[str]],
        typer.Argument(
            help="Command name followed by its --option value pairs",
            show_default=False,
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Log controller requests instead of sending them",
        ),
    ] = False,
    strict: Annotated[
        Optional[bool],
        typer.Option(
            "--strict/--lenient",
            help="Reject options the command does not declare",
            show_default=False,
        ),
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", help="Logging level")
    ] = None,
    list_commands: Annotated[
        bool,
        typer.Option("--list-commands", help="List the supported commands"),
    ] = False,
) -> None:
    """Send one HCI command to the local controller and print the result."""
    _configure_logging(log_level)

    if list_commands:
        _print_commands(COMMAND_REGISTRY)
        return

    if not arguments:
        err_console.print(
            "No command given. Use --list-commands to see the commands.",
            markup=False,
        )
        raise typer.Exit(EXIT_USAGE_ERROR)

    if strict is None:
        strict = get_env_bool(STRICT_OPTIONS_ENV, True)

    try:
        command = COMMAND_REGISTRY.parse(arguments, strict=strict)
    except CommandError as exc:
        err_console.print(f"Error: {exc}", markup=False, soft_wrap=True)
        raise typer.Exit(EXIT_USAGE_ERROR) from exc

    try:
        controller = resolve_controller(
            get_env(CONTROLLER_ENV),
            dry_run or get_env_bool(DRY_RUN_ENV, False),
        )
    except ControllerUnavailable as exc:
        err_console.print(f"Error: {exc}", markup=False, soft_wrap=True)
        raise typer.Exit(EXIT_CONTROLLER_ERROR) from exc

    record = CommandExecutor(controller).execute(command)
    for line in record.output:
        console.print(line, markup=False, soft_wrap=True)
    if record.status != "success":
        raise typer.Exit(EXIT_CONTROLLER_ERROR)


if __name__ == "__main__":
    app()

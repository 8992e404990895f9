"""Generic construction of command models from tokenized parameters."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .exception import InvalidOptionValue, MissingOption, UnknownOption
from .options import OptionSpec, Parameter

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _parse_value(spec: OptionSpec, parameter: Parameter) -> Any:
    """Apply the option parser to one parameter."""
    if parameter.value is None:
        if spec.flag_value is not None:
            return spec.flag_value
        raise MissingOption(spec.name)
    try:
        return spec.parser(parameter.value)
    except ValueError as exc:
        raise InvalidOptionValue(spec.name, parameter.value, str(exc)) from exc


def _resolve_scalar(spec: OptionSpec, matches: List[Parameter]) -> Any:
    if not matches:
        if spec.required:
            raise MissingOption(spec.name)
        return spec.default
    return _parse_value(spec, matches[0])


def _resolve_repeatable(spec: OptionSpec, matches: List[Parameter]) -> Any:
    if not matches:
        if spec.required:
            raise MissingOption(spec.name)
        return spec.empty_value()
    values = [_parse_value(spec, parameter) for parameter in matches]
    if spec.collection == "set":
        return frozenset(values)
    return tuple(values)


def _check_undeclared(
    command_name: str,
    specs: Sequence[OptionSpec],
    parameters: Sequence[Parameter],
    strict: bool,
) -> None:
    declared = {spec.name for spec in specs}
    for parameter in parameters:
        if parameter.option in declared:
            continue
        if strict:
            raise UnknownOption(command_name, parameter.option)
        logger.warning(
            "Ignoring undeclared option %r (value %r) for command %s",
            parameter.option,
            parameter.value,
            command_name,
        )


def _validation_failure(
    exc: ValidationError,
    command_cls: type,
    specs: Sequence[OptionSpec],
    raw_values: Dict[str, Tuple[str, str]],
) -> InvalidOptionValue:
    """Translate the first model validation error into an option error.

    A cross-field check failing on a field left at its default is blamed on
    the supplied field it was compared against, via the model's
    ``field_dependencies``.
    """
    error = exc.errors()[0]
    location = error.get("loc") or ()
    field_name: Optional[Any] = location[0] if location else None
    if field_name not in raw_values:
        dependencies = getattr(command_cls, "field_dependencies", {})
        for related in dependencies.get(field_name, ()):
            if related in raw_values:
                field_name = related
                break
    if field_name in raw_values:
        option, raw = raw_values[field_name]
    else:
        spec = next((s for s in specs if s.field == field_name), None)
        option = spec.name if spec else str(field_name or "")
        raw = ""
    return InvalidOptionValue(option, raw, error.get("msg"))


def build_command(
    command_cls: Type[M],
    parameters: Sequence[Parameter],
    *,
    command_name: str,
    strict: bool = True,
) -> M:
    """Build ``command_cls`` from ``parameters`` or raise a ``CommandError``.

    Options are resolved in declaration order and the first problem wins.
    The command is constructed only after every option resolved, so a
    failure never leaves a partial command behind.

    Args:
        command_cls: Command model exposing an ``options`` declaration.
        parameters: Parameters produced by the tokenizer.
        command_name: Name the command was invoked with, for diagnostics.
        strict: Reject parameters the command does not declare.

    Raises:
        UnknownOption: ``strict`` is set and an undeclared option was given.
        MissingOption: A required option, or an option's value, is absent.
        InvalidOptionValue: A value failed to parse or validate.
    """
    specs: Sequence[OptionSpec] = getattr(command_cls, "options", ())
    _check_undeclared(command_name, specs, parameters, strict)

    values: Dict[str, Any] = {}
    raw_values: Dict[str, Tuple[str, str]] = {}
    for spec in specs:
        matches = [p for p in parameters if p.option == spec.name]
        if spec.repeatable:
            values[spec.field] = _resolve_repeatable(spec, matches)
            raw = ",".join(p.value or "" for p in matches)
        else:
            values[spec.field] = _resolve_scalar(spec, matches)
            raw = (matches[0].value or "") if matches else ""
        if matches:
            raw_values[spec.field] = (spec.name, raw)

    try:
        return command_cls(**values)
    except ValidationError as exc:
        raise _validation_failure(exc, command_cls, specs, raw_values) from exc

"""Option declarations and the raw parameters extracted from the command line."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

Collection = Literal["set", "list"]

_NO_DEFAULT: Any = object()


@dataclass(frozen=True)
class OptionSpec:
    """Static declaration of one option a command kind recognizes.

    Attributes:
        name: Canonical lower-case option name, given as ``--name``.
        field: Command model attribute receiving the parsed value.
        parser: Callable turning one raw token into a typed value.
        required: Whether building fails when the option is absent.
        default: Value used when an optional option is absent.
        repeatable: Whether every occurrence is kept instead of the first.
        collection: ``set`` collapses duplicates, ``list`` keeps order.
        flag_value: Value used when the option is given without a value;
            ``None`` means a value is mandatory.
    """

    name: str
    field: str
    parser: Callable[[str], Any]
    required: bool = False
    default: Any = _NO_DEFAULT
    repeatable: bool = False
    collection: Collection = "set"
    flag_value: Any = None

    def __post_init__(self) -> None:
        if self.name != self.name.lower():
            raise ValueError(f"Option name '{self.name}' must be lower-case")
        if not self.required and not self.has_default and not self.repeatable:
            raise ValueError(f"Optional option '{self.name}' needs a default")

    @property
    def has_default(self) -> bool:
        return self.default is not _NO_DEFAULT

    def empty_value(self) -> Any:
        """Value of a repeatable option given zero times."""
        if self.has_default:
            return self.default
        return frozenset() if self.collection == "set" else ()


def required(name: str, field: str, parser: Callable[[str], Any]) -> OptionSpec:
    """Declare a required scalar option."""
    return OptionSpec(name=name, field=field, parser=parser, required=True)


def optional(
    name: str,
    field: str,
    parser: Callable[[str], Any],
    default: Any,
    flag_value: Any = None,
) -> OptionSpec:
    """Declare an optional scalar option with its default."""
    return OptionSpec(
        name=name,
        field=field,
        parser=parser,
        default=default,
        flag_value=flag_value,
    )


def repeatable(
    name: str,
    field: str,
    parser: Callable[[str], Any],
    collection: Collection = "set",
    required: bool = False,
) -> OptionSpec:
    """Declare an option that may be given several times."""
    return OptionSpec(
        name=name,
        field=field,
        parser=parser,
        required=required,
        repeatable=True,
        collection=collection,
    )


@dataclass(frozen=True)
class Parameter:
    """One ``(option, raw value)`` pair found on the command line."""

    option: str
    value: Optional[str] = None

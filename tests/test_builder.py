"""Tests for the option model and the generic command builder."""

from typing import ClassVar, FrozenSet, Tuple

import pytest
from pydantic import Field

from hcitool.builder import build_command
from hcitool.commands_model import HCICommand
from hcitool.exception import InvalidOptionValue, MissingOption, UnknownOption
from hcitool.hci_types import Address, LowEnergyEvent
from hcitool.options import OptionSpec, Parameter, optional, repeatable, required
from hcitool.parsers import parse_address, parse_keyword, parse_uint8


class SampleCommand(HCICommand):
    """Command model exercising every option shape."""

    command_name: ClassVar[str] = "sample"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        required("address", "address", parse_address),
        optional("level", "level", parse_uint8, 7),
        optional("verbose", "verbose", parse_uint8, 0, flag_value=1),
        repeatable("event", "events", parse_keyword(LowEnergyEvent)),
        repeatable("step", "steps", parse_uint8, collection="list"),
    )

    address: Address
    level: int = Field(7, le=100)
    verbose: int = 0
    events: FrozenSet[LowEnergyEvent] = frozenset()
    steps: Tuple[int, ...] = ()


ADDRESS = "00:11:22:33:44:55"


def build(*parameters: Parameter, strict: bool = True) -> SampleCommand:
    return build_command(
        SampleCommand, list(parameters), command_name="sample", strict=strict
    )


class TestOptionSpec:
    """Test option declarations."""

    def test_names_must_be_lower_case(self):
        with pytest.raises(ValueError, match="lower-case"):
            required("Address", "address", parse_address)

    def test_optional_needs_default(self):
        with pytest.raises(ValueError, match="needs a default"):
            OptionSpec(name="level", field="level", parser=parse_uint8)

    def test_repeatable_empty_values(self):
        """Sets default to an empty frozenset, lists to an empty tuple."""
        as_set = repeatable("event", "events", str)
        as_list = repeatable("step", "steps", str, collection="list")
        assert as_set.empty_value() == frozenset()
        assert as_list.empty_value() == ()


class TestBuildCommand:
    """Test building a command from parameters."""

    def test_required_and_defaults(self):
        """Omitted optional options take their defaults."""
        command = build(Parameter("address", ADDRESS))
        assert command.address == Address.from_string(ADDRESS)
        assert command.level == 7
        assert command.verbose == 0
        assert command.events == frozenset()
        assert command.steps == ()

    def test_missing_required_option(self):
        with pytest.raises(MissingOption) as exc_info:
            build(Parameter("level", "3"))
        assert exc_info.value.option == "address"

    def test_required_option_without_value(self):
        """A present option with no value is a missing value."""
        with pytest.raises(MissingOption) as exc_info:
            build(Parameter("address"))
        assert exc_info.value.option == "address"

    def test_optional_option_without_value(self):
        """Options without a flag value still need a value when present."""
        with pytest.raises(MissingOption) as exc_info:
            build(Parameter("address", ADDRESS), Parameter("level"))
        assert exc_info.value.option == "level"

    def test_flag_value(self):
        """Flag-style options take their flag value when given bare."""
        command = build(Parameter("address", ADDRESS), Parameter("verbose"))
        assert command.verbose == 1

    def test_invalid_value_keeps_raw_string(self):
        with pytest.raises(InvalidOptionValue) as exc_info:
            build(Parameter("address", ADDRESS), Parameter("level", "0x1FF"))
        assert exc_info.value.option == "level"
        assert exc_info.value.value == "0x1FF"

    def test_model_constraint_reported_as_option_error(self):
        """Field bounds on the model surface as InvalidOptionValue."""
        with pytest.raises(InvalidOptionValue) as exc_info:
            build(Parameter("address", ADDRESS), Parameter("level", "200"))
        assert exc_info.value.option == "level"
        assert exc_info.value.value == "200"

    def test_first_occurrence_wins_for_scalars(self):
        command = build(
            Parameter("address", ADDRESS),
            Parameter("level", "1"),
            Parameter("level", "2"),
        )
        assert command.level == 1

    def test_repeatable_set_collapses_duplicates(self):
        command = build(
            Parameter("address", ADDRESS),
            Parameter("event", "connectioncomplete"),
            Parameter("event", "scantimeout"),
            Parameter("event", "connectioncomplete"),
        )
        assert command.events == frozenset(
            {LowEnergyEvent.connection_complete, LowEnergyEvent.scan_timeout}
        )

    def test_repeatable_list_keeps_order(self):
        command = build(
            Parameter("address", ADDRESS),
            Parameter("step", "3"),
            Parameter("step", "1"),
            Parameter("step", "3"),
        )
        assert command.steps == (3, 1, 3)

    def test_repeatable_invalid_value(self):
        with pytest.raises(InvalidOptionValue) as exc_info:
            build(
                Parameter("address", ADDRESS),
                Parameter("event", "connectioncomplete"),
                Parameter("event", "nosuchevent"),
            )
        assert exc_info.value.option == "event"
        assert exc_info.value.value == "nosuchevent"

    def test_first_problem_wins(self):
        """Options are checked in declaration order."""
        with pytest.raises(MissingOption):
            build(Parameter("level", "abc"))

    def test_strict_rejects_undeclared_option(self):
        with pytest.raises(UnknownOption) as exc_info:
            build(Parameter("address", ADDRESS), Parameter("colour", "red"))
        assert exc_info.value.option == "colour"
        assert exc_info.value.command == "sample"

    def test_strict_rejects_stray_value(self):
        with pytest.raises(UnknownOption, match="positional"):
            build(Parameter("address", ADDRESS), Parameter("", "extra"))

    def test_lenient_ignores_undeclared_option(self, caplog):
        with caplog.at_level("WARNING", logger="hcitool.builder"):
            command = build(
                Parameter("address", ADDRESS),
                Parameter("colour", "red"),
                strict=False,
            )
        assert command.level == 7
        assert "colour" in caplog.text

    def test_built_commands_are_immutable(self):
        command = build(Parameter("address", ADDRESS))
        with pytest.raises(Exception):
            command.level = 9

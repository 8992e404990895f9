"""Tests for command lookup and end-to-end argument parsing."""

import pytest

from hcitool.commands_model import (
    COMMAND_TYPES,
    CreateConnectionCommand,
    LEClearWhiteListCommand,
    LECreateConnectionCancelCommand,
    LEReadBufferSizeCommand,
    LEReadLocalSupportedFeaturesCommand,
    LEScanCommand,
    LESetEventMaskCommand,
    LESetRandomAddressCommand,
    ReadRemoteExtendedFeaturesCommand,
)
from hcitool.const import DEFAULT_CONNECTION_TIMEOUT, DEFAULT_SCAN_DURATION
from hcitool.exception import (
    InvalidOptionValue,
    MissingOption,
    UnknownCommand,
    UnknownOption,
)
from hcitool.hci_types import (
    Address,
    AllowRoleSwitch,
    ClockOffset,
    LowEnergyAddressType,
    LowEnergyEvent,
    PacketType,
)
from hcitool.registry import COMMAND_REGISTRY, CommandRegistry, parse_command

CONNECTION_ARGUMENTS = [
    "--address",
    "00:1B:DC:F2:1C:8A",
    "--packettype",
    "0xCC18",
    "--pagescanrepetitionmode",
    "1",
    "--clockoffset",
    "0x0000",
    "--allowroleswitch",
    "1",
]


class TestParseScenarios:
    """Parse complete argument lists through the default registry."""

    def test_set_random_address(self):
        command = parse_command(
            ["setrandomaddress", "--address", "54:39:A3:47:D8:F0"]
        )
        assert isinstance(command, LESetRandomAddressCommand)
        assert command.kind == "setrandomaddress"
        assert command.address == Address.from_string("54:39:A3:47:D8:F0")

    def test_set_random_address_wrong_option(self):
        """A misspelled option is rejected in strict mode."""
        with pytest.raises(UnknownOption):
            parse_command(["setrandomaddress", "--randomaddress"])

    def test_set_random_address_wrong_option_lenient(self):
        """Leniently, the required address is still missing."""
        with pytest.raises(MissingOption) as exc_info:
            parse_command(["setrandomaddress", "--randomaddress"], strict=False)
        assert exc_info.value.option == "address"

    def test_lescan_duration(self):
        command = parse_command(["lescan", "--duration", "1000"])
        assert isinstance(command, LEScanCommand)
        assert command.duration == 1000

    def test_lescan_defaults(self):
        command = parse_command(["lescan"])
        assert isinstance(command, LEScanCommand)
        assert command.duration == DEFAULT_SCAN_DURATION
        assert command.filter_duplicates is True

    def test_lescan_invalid_duration(self):
        with pytest.raises(InvalidOptionValue) as exc_info:
            parse_command(["lescan", "--duration", "abc"])
        assert exc_info.value.option == "duration"
        assert exc_info.value.value == "abc"

    def test_lescan_duration_without_value(self):
        with pytest.raises(MissingOption) as exc_info:
            parse_command(["lescan", "--duration"])
        assert exc_info.value.option == "duration"

    def test_set_event_mask(self):
        command = parse_command(
            [
                "seteventmask",
                "--event",
                "connectioncomplete",
                "--event",
                "advertisingreport",
            ]
        )
        assert isinstance(command, LESetEventMaskCommand)
        assert command.events == {
            LowEnergyEvent.connection_complete,
            LowEnergyEvent.advertising_report,
        }
        assert int(command.mask) == 0x03

    def test_set_event_mask_without_events(self):
        command = parse_command(["seteventmask"])
        assert command.events == frozenset()
        assert int(command.mask) == 0


class TestParseCommands:
    """Parse the remaining command kinds."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("setreadbuffersize", LEReadBufferSizeCommand),
            ("readlocalsupportedfeatures", LEReadLocalSupportedFeaturesCommand),
            ("createconnectioncancel", LECreateConnectionCancelCommand),
            ("clearwhitelist", LEClearWhiteListCommand),
        ],
    )
    def test_commands_without_options(self, name, expected):
        assert isinstance(parse_command([name]), expected)

    def test_command_names_are_case_insensitive(self):
        assert isinstance(parse_command(["LEScan"]), LEScanCommand)

    def test_aliases(self):
        assert isinstance(parse_command(["clearallowlist"]), LEClearWhiteListCommand)
        assert isinstance(parse_command(["readbuffersize"]), LEReadBufferSizeCommand)

    def test_unknown_command(self):
        with pytest.raises(UnknownCommand) as exc_info:
            parse_command(["frobnicate", "--address", "00:00:00:00:00:00"])
        assert exc_info.value.name == "frobnicate"

    def test_create_connection(self):
        command = parse_command(["createconnection", *CONNECTION_ARGUMENTS])
        assert isinstance(command, CreateConnectionCommand)
        assert command.address == Address.from_string("00:1B:DC:F2:1C:8A")
        assert command.packet_type == PacketType(0xCC18)
        assert command.page_scan_repetition_mode == 1
        assert command.clock_offset == ClockOffset(0)
        assert command.allow_role_switch is AllowRoleSwitch.allowed
        assert command.timeout == DEFAULT_CONNECTION_TIMEOUT

    def test_create_connection_packet_type_names(self):
        arguments = ["createconnection", *CONNECTION_ARGUMENTS]
        arguments[arguments.index("0xCC18")] = "dm1,dh1"
        command = parse_command(arguments)
        assert command.packet_type == PacketType.dm1 | PacketType.dh1

    def test_unlisted_page_scan_repetition_mode_is_kept(self):
        arguments = ["createconnection", *CONNECTION_ARGUMENTS]
        arguments[arguments.index("--pagescanrepetitionmode") + 1] = "0x07"
        command = parse_command(arguments)
        assert command.page_scan_repetition_mode == 7

    def test_unknown_allow_role_switch_fails(self):
        arguments = ["createconnection", *CONNECTION_ARGUMENTS]
        arguments[-1] = "5"
        with pytest.raises(InvalidOptionValue) as exc_info:
            parse_command(arguments)
        assert exc_info.value.option == "allowroleswitch"
        assert exc_info.value.value == "5"

    def test_read_remote_extended_features(self):
        command = parse_command(
            [
                "readremoteextendedfeatures",
                *CONNECTION_ARGUMENTS,
                "--pagenumber",
                "1",
                "--timeout",
                "2s",
            ]
        )
        assert isinstance(command, ReadRemoteExtendedFeaturesCommand)
        assert command.page_number == 1
        assert command.timeout == 2000

    def test_read_remote_extended_features_needs_page(self):
        with pytest.raises(MissingOption) as exc_info:
            parse_command(["readremoteextendedfeatures", *CONNECTION_ARGUMENTS])
        assert exc_info.value.option == "pagenumber"

    def test_add_to_allow_list(self):
        command = parse_command(
            [
                "addwhitelist",
                "--address",
                "c4:7c:8d:6a:3e:01",
                "--addresstype",
                "Random",
            ]
        )
        assert command.address.raw_value == "C4:7C:8D:6A:3E:01"
        assert command.address_type is LowEnergyAddressType.random

    def test_scan_window_longer_than_interval(self):
        with pytest.raises(InvalidOptionValue) as exc_info:
            parse_command(
                ["setscanparameters", "--interval", "0x10", "--window", "0x20"]
            )
        assert exc_info.value.option == "window"
        assert exc_info.value.value == "0x20"

    def test_scan_interval_shorter_than_default_window(self):
        """The check against the default window names the supplied option."""
        with pytest.raises(InvalidOptionValue) as exc_info:
            parse_command(["setscanparameters", "--interval", "0x8"])
        assert exc_info.value.option == "interval"
        assert exc_info.value.value == "0x8"
        assert "must not exceed" in str(exc_info.value)

    def test_scan_interval_below_minimum(self):
        with pytest.raises(InvalidOptionValue) as exc_info:
            parse_command(["setscanparameters", "--interval", "2", "--window", "2"])
        assert exc_info.value.option == "interval"

    def test_advertising_data_too_long(self):
        with pytest.raises(InvalidOptionValue) as exc_info:
            parse_command(["setadvertisingdata", "--data", "00" * 32])
        assert exc_info.value.option == "data"

    def test_advertise_enable_flag(self):
        assert parse_command(["setadvertiseenable", "--enable"]).enable is True
        command = parse_command(["setadvertiseenable", "--enable", "off"])
        assert command.enable is False

    def test_channel_map_handle_out_of_range(self):
        with pytest.raises(InvalidOptionValue) as exc_info:
            parse_command(["readchannelmap", "--handle", "0x0F00"])
        assert exc_info.value.option == "handle"
        assert exc_info.value.value == "0x0F00"

    def test_write_local_name_keeps_case(self):
        command = parse_command(["writelocalname", "--name", "Living Room"])
        assert command.name == "Living Room"

    def test_write_local_name_cannot_be_empty(self):
        with pytest.raises(InvalidOptionValue):
            parse_command(["writelocalname", "--name", ""])

    def test_parsing_is_repeatable(self):
        arguments = [
            "readremoteextendedfeatures",
            *CONNECTION_ARGUMENTS,
            "--pagenumber",
            "0",
        ]
        assert parse_command(arguments) == parse_command(arguments)

    def test_commands_are_frozen(self):
        command = parse_command(["lescan"])
        with pytest.raises(Exception):
            command.duration = 5


class TestCommandRegistry:
    """Test the registry state machine."""

    def test_default_registry_covers_every_kind(self):
        kinds = {entry.command_type for entry in COMMAND_REGISTRY}
        assert kinds == set(COMMAND_TYPES)
        assert COMMAND_REGISTRY.ready

    def test_kinds_are_unique(self):
        names = [command_type.command_name for command_type in COMMAND_TYPES]
        assert len(names) == len(set(names))

    def test_uninitialized_registry_rejects_lookup(self):
        registry = CommandRegistry()
        registry.register(LEScanCommand)
        assert not registry.ready
        with pytest.raises(RuntimeError, match="not initialized"):
            registry.lookup("lescan")

    def test_frozen_registry_rejects_registration(self):
        registry = CommandRegistry()
        registry.freeze()
        with pytest.raises(RuntimeError, match="frozen"):
            registry.register(LEScanCommand)

    def test_duplicate_name(self):
        registry = CommandRegistry()
        registry.register(LEScanCommand)
        with pytest.raises(ValueError, match="already registered"):
            registry.register(LEScanCommand)

    def test_entries_are_read_only(self):
        with pytest.raises(TypeError):
            COMMAND_REGISTRY.entries["lescan"] = None

    def test_contains(self):
        assert "LESCAN" in COMMAND_REGISTRY
        assert "frobnicate" not in COMMAND_REGISTRY

    def test_custom_builder(self):
        registry = CommandRegistry()
        calls = []

        def builder(parameters, *, command_name, strict):
            calls.append((command_name, list(parameters), strict))
            return LEScanCommand(duration=5)

        registry.register(LEScanCommand, builder)
        registry.freeze()
        command = registry.parse(["lescan", "--duration", "1"], strict=False)
        assert command.duration == 5
        assert calls[0][0] == "lescan"
        assert calls[0][2] is False

"""Command models: one frozen pydantic model per supported HCI command kind.

Each model declares the options it recognizes as static ``OptionSpec`` data;
``hcitool.builder.build_command`` turns tokenized parameters into an
instance. ``Command`` is the closed union of every model, discriminated on
``kind``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    List,
    Optional,
    Tuple,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import Annotated, Literal

from .const import (
    DEFAULT_CONNECTION_TIMEOUT,
    DEFAULT_DISCONNECT_REASON,
    DEFAULT_SCAN_DURATION,
    DEFAULT_SCAN_INTERVAL,
    DEFAULT_SCAN_WINDOW,
    MAX_ADVERTISING_DATA_LENGTH,
    MAX_CONNECTION_HANDLE,
    MAX_LOCAL_NAME_LENGTH,
    MAX_SCAN_INTERVAL,
    MIN_SCAN_INTERVAL,
)
from .hci_types import (
    Address,
    AllowRoleSwitch,
    ClockOffset,
    LowEnergyAddressType,
    LowEnergyEvent,
    OwnAddressType,
    PacketType,
    ScanFilterPolicy,
    ScanType,
)
from .options import OptionSpec, optional, repeatable, required
from .parsers import (
    parse_address,
    parse_bool,
    parse_duration,
    parse_enum_value,
    parse_flag_value,
    parse_hex_bytes,
    parse_keyword,
    parse_text,
    parse_uint8,
    parse_uint16,
)


class HCICommand(BaseModel):
    """Common base of every command model."""

    model_config = ConfigDict(frozen=True)

    command_name: ClassVar[str] = ""
    aliases: ClassVar[Tuple[str, ...]] = ()
    description: ClassVar[str] = ""
    options: ClassVar[Tuple[OptionSpec, ...]] = ()
    # Field -> fields a cross-field validator compares it against.
    field_dependencies: ClassVar[Dict[str, Tuple[str, ...]]] = {}


class LEScanCommand(HCICommand):
    """Scan for LE advertisements for a fixed duration."""

    command_name: ClassVar[str] = "lescan"
    description: ClassVar[str] = "Scan for LE advertising devices"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        optional(
            "duration", "duration", parse_duration, DEFAULT_SCAN_DURATION
        ),
        optional(
            "filterduplicates",
            "filter_duplicates",
            parse_bool,
            True,
            flag_value=True,
        ),
    )

    kind: Literal["lescan"] = "lescan"
    duration: int = Field(DEFAULT_SCAN_DURATION, ge=1)
    filter_duplicates: bool = True


class LESetRandomAddressCommand(HCICommand):
    """Set the LE random device address of the controller."""

    command_name: ClassVar[str] = "setrandomaddress"
    description: ClassVar[str] = "Set the LE random device address"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        required("address", "address", parse_address),
    )

    kind: Literal["setrandomaddress"] = "setrandomaddress"
    address: Address


class LESetEventMaskCommand(HCICommand):
    """Select which LE meta events the controller reports."""

    command_name: ClassVar[str] = "seteventmask"
    description: ClassVar[str] = "Set the LE event mask"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        repeatable("event", "events", parse_keyword(LowEnergyEvent)),
    )

    kind: Literal["seteventmask"] = "seteventmask"
    events: FrozenSet[LowEnergyEvent] = frozenset()

    @property
    def mask(self) -> LowEnergyEvent:
        mask = LowEnergyEvent(0)
        for event in self.events:
            mask |= event
        return mask


class LEClearWhiteListCommand(HCICommand):
    """Remove every device from the LE allow list."""

    command_name: ClassVar[str] = "clearwhitelist"
    aliases: ClassVar[Tuple[str, ...]] = ("clearallowlist",)
    description: ClassVar[str] = "Clear the LE allow list"

    kind: Literal["clearwhitelist"] = "clearwhitelist"


class LECreateConnectionCancelCommand(HCICommand):
    """Cancel a pending LE connection attempt."""

    command_name: ClassVar[str] = "createconnectioncancel"
    description: ClassVar[str] = "Cancel a pending LE connection"

    kind: Literal["createconnectioncancel"] = "createconnectioncancel"


class LEReadLocalSupportedFeaturesCommand(HCICommand):
    """Read the LE features of the local controller."""

    command_name: ClassVar[str] = "readlocalsupportedfeatures"
    description: ClassVar[str] = "Read local LE supported features"

    kind: Literal["readlocalsupportedfeatures"] = "readlocalsupportedfeatures"


class LEReadBufferSizeCommand(HCICommand):
    """Read the LE ACL buffer size of the local controller."""

    command_name: ClassVar[str] = "setreadbuffersize"
    aliases: ClassVar[Tuple[str, ...]] = ("readbuffersize",)
    description: ClassVar[str] = "Read the LE ACL buffer size"

    kind: Literal["setreadbuffersize"] = "setreadbuffersize"


class LEReadWhiteListSizeCommand(HCICommand):
    """Read how many entries the LE allow list holds."""

    command_name: ClassVar[str] = "readwhitelistsize"
    aliases: ClassVar[Tuple[str, ...]] = ("readallowlistsize",)
    description: ClassVar[str] = "Read the LE allow list size"

    kind: Literal["readwhitelistsize"] = "readwhitelistsize"


_ALLOW_LIST_OPTIONS: Tuple[OptionSpec, ...] = (
    required("address", "address", parse_address),
    optional(
        "addresstype",
        "address_type",
        parse_keyword(LowEnergyAddressType),
        LowEnergyAddressType.public,
    ),
)


class LEAddDeviceToWhiteListCommand(HCICommand):
    """Add one device to the LE allow list."""

    command_name: ClassVar[str] = "addwhitelist"
    aliases: ClassVar[Tuple[str, ...]] = ("addallowlist",)
    description: ClassVar[str] = "Add a device to the LE allow list"
    options: ClassVar[Tuple[OptionSpec, ...]] = _ALLOW_LIST_OPTIONS

    kind: Literal["addwhitelist"] = "addwhitelist"
    address: Address
    address_type: LowEnergyAddressType = LowEnergyAddressType.public


class LERemoveDeviceFromWhiteListCommand(HCICommand):
    """Remove one device from the LE allow list."""

    command_name: ClassVar[str] = "removewhitelist"
    aliases: ClassVar[Tuple[str, ...]] = ("removeallowlist",)
    description: ClassVar[str] = "Remove a device from the LE allow list"
    options: ClassVar[Tuple[OptionSpec, ...]] = _ALLOW_LIST_OPTIONS

    kind: Literal["removewhitelist"] = "removewhitelist"
    address: Address
    address_type: LowEnergyAddressType = LowEnergyAddressType.public


class LESetScanParametersCommand(HCICommand):
    """Configure LE scanning."""

    command_name: ClassVar[str] = "setscanparameters"
    description: ClassVar[str] = "Set LE scan parameters"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        optional("type", "scan_type", parse_keyword(ScanType), ScanType.active),
        optional("interval", "interval", parse_uint16, DEFAULT_SCAN_INTERVAL),
        optional("window", "window", parse_uint16, DEFAULT_SCAN_WINDOW),
        optional(
            "ownaddresstype",
            "own_address_type",
            parse_keyword(OwnAddressType),
            OwnAddressType.public,
        ),
        optional(
            "filterpolicy",
            "filter_policy",
            parse_keyword(ScanFilterPolicy),
            ScanFilterPolicy.accept_all,
        ),
    )

    field_dependencies: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "window": ("interval",),
    }

    kind: Literal["setscanparameters"] = "setscanparameters"
    scan_type: ScanType = ScanType.active
    interval: int = Field(
        DEFAULT_SCAN_INTERVAL, ge=MIN_SCAN_INTERVAL, le=MAX_SCAN_INTERVAL
    )
    window: int = Field(
        DEFAULT_SCAN_WINDOW, ge=MIN_SCAN_INTERVAL, le=MAX_SCAN_INTERVAL
    )
    own_address_type: OwnAddressType = OwnAddressType.public
    filter_policy: ScanFilterPolicy = ScanFilterPolicy.accept_all

    @field_validator("window")
    @classmethod
    def validate_window_within_interval(cls, v: int, info) -> int:
        """The scan window cannot be longer than the scan interval."""
        interval = info.data.get("interval")
        if interval is not None and v > interval:
            raise ValueError(
                f"Scan window (0x{v:04X}) must not exceed "
                f"scan interval (0x{interval:04X})"
            )
        return v


class LESetAdvertiseEnableCommand(HCICommand):
    """Start or stop advertising."""

    command_name: ClassVar[str] = "setadvertiseenable"
    description: ClassVar[str] = "Enable or disable LE advertising"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        OptionSpec(
            name="enable",
            field="enable",
            parser=parse_bool,
            required=True,
            flag_value=True,
        ),
    )

    kind: Literal["setadvertiseenable"] = "setadvertiseenable"
    enable: bool


class LESetAdvertisingDataCommand(HCICommand):
    """Replace the advertising payload."""

    command_name: ClassVar[str] = "setadvertisingdata"
    description: ClassVar[str] = "Set the LE advertising data"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        required("data", "data", parse_hex_bytes),
    )

    kind: Literal["setadvertisingdata"] = "setadvertisingdata"
    data: bytes = Field(..., max_length=MAX_ADVERTISING_DATA_LENGTH)


class LEReadChannelMapCommand(HCICommand):
    """Read the channel map of an LE connection."""

    command_name: ClassVar[str] = "readchannelmap"
    description: ClassVar[str] = "Read the channel map of a connection"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        required("handle", "handle", parse_uint16),
    )

    kind: Literal["readchannelmap"] = "readchannelmap"
    handle: int = Field(..., ge=0, le=MAX_CONNECTION_HANDLE)


class LERandCommand(HCICommand):
    """Ask the controller for a random number."""

    command_name: ClassVar[str] = "lerand"
    description: ClassVar[str] = "Generate a random number"

    kind: Literal["lerand"] = "lerand"


_CONNECTION_OPTIONS: Tuple[OptionSpec, ...] = (
    required("address", "address", parse_address),
    required(
        "packettype", "packet_type", parse_flag_value(PacketType, 16)
    ),
    # Any 8-bit code is passed through; unknown modes are not rejected.
    required("pagescanrepetitionmode", "page_scan_repetition_mode", parse_uint8),
    required(
        "clockoffset", "clock_offset", parse_flag_value(ClockOffset, 16)
    ),
    required(
        "allowroleswitch",
        "allow_role_switch",
        parse_enum_value(AllowRoleSwitch),
    ),
    optional(
        "timeout", "timeout", parse_duration, DEFAULT_CONNECTION_TIMEOUT
    ),
)


class CreateConnectionCommand(HCICommand):
    """Open a BR/EDR connection to a remote device."""

    command_name: ClassVar[str] = "createconnection"
    description: ClassVar[str] = "Create a BR/EDR connection"
    options: ClassVar[Tuple[OptionSpec, ...]] = _CONNECTION_OPTIONS

    kind: Literal["createconnection"] = "createconnection"
    address: Address
    packet_type: PacketType
    page_scan_repetition_mode: int = Field(..., ge=0, le=0xFF)
    clock_offset: ClockOffset
    allow_role_switch: AllowRoleSwitch
    timeout: int = Field(DEFAULT_CONNECTION_TIMEOUT, ge=1)


class ReadRemoteExtendedFeaturesCommand(HCICommand):
    """Connect to a remote device and read one page of its LMP features."""

    command_name: ClassVar[str] = "readremoteextendedfeatures"
    description: ClassVar[str] = "Connect and read remote extended features"
    options: ClassVar[Tuple[OptionSpec, ...]] = _CONNECTION_OPTIONS + (
        required("pagenumber", "page_number", parse_uint8),
    )

    kind: Literal["readremoteextendedfeatures"] = "readremoteextendedfeatures"
    address: Address
    packet_type: PacketType
    page_scan_repetition_mode: int = Field(..., ge=0, le=0xFF)
    clock_offset: ClockOffset
    allow_role_switch: AllowRoleSwitch
    timeout: int = Field(DEFAULT_CONNECTION_TIMEOUT, ge=1)
    page_number: int = Field(..., ge=0, le=0xFF)


class DisconnectCommand(HCICommand):
    """Terminate an existing connection."""

    command_name: ClassVar[str] = "disconnect"
    description: ClassVar[str] = "Disconnect a connection"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        required("handle", "handle", parse_uint16),
        optional("reason", "reason", parse_uint8, DEFAULT_DISCONNECT_REASON),
    )

    kind: Literal["disconnect"] = "disconnect"
    handle: int = Field(..., ge=0, le=MAX_CONNECTION_HANDLE)
    reason: int = Field(DEFAULT_DISCONNECT_REASON, ge=0, le=0xFF)


class WriteLocalNameCommand(HCICommand):
    """Change the user-friendly name of the local controller."""

    command_name: ClassVar[str] = "writelocalname"
    description: ClassVar[str] = "Write the local device name"
    options: ClassVar[Tuple[OptionSpec, ...]] = (
        required("name", "name", parse_text(MAX_LOCAL_NAME_LENGTH)),
    )

    kind: Literal["writelocalname"] = "writelocalname"
    name: str = Field(..., min_length=1)


class ReadLocalNameCommand(HCICommand):
    """Read the user-friendly name of the local controller."""

    command_name: ClassVar[str] = "readlocalname"
    description: ClassVar[str] = "Read the local device name"

    kind: Literal["readlocalname"] = "readlocalname"


COMMAND_TYPES: Tuple[type, ...] = (
    LEScanCommand,
    LESetRandomAddressCommand,
    LESetEventMaskCommand,
    LEClearWhiteListCommand,
    LECreateConnectionCancelCommand,
    LEReadLocalSupportedFeaturesCommand,
    LEReadBufferSizeCommand,
    LEReadWhiteListSizeCommand,
    LEAddDeviceToWhiteListCommand,
    LERemoveDeviceFromWhiteListCommand,
    LESetScanParametersCommand,
    LESetAdvertiseEnableCommand,
    LESetAdvertisingDataCommand,
    LEReadChannelMapCommand,
    LERandCommand,
    CreateConnectionCommand,
    ReadRemoteExtendedFeaturesCommand,
    DisconnectCommand,
    WriteLocalNameCommand,
    ReadLocalNameCommand,
)

Command = Annotated[
    Union[
        LEScanCommand,
        LESetRandomAddressCommand,
        LESetEventMaskCommand,
        LEClearWhiteListCommand,
        LECreateConnectionCancelCommand,
        LEReadLocalSupportedFeaturesCommand,
        LEReadBufferSizeCommand,
        LEReadWhiteListSizeCommand,
        LEAddDeviceToWhiteListCommand,
        LERemoveDeviceFromWhiteListCommand,
        LESetScanParametersCommand,
        LESetAdvertiseEnableCommand,
        LESetAdvertisingDataCommand,
        LEReadChannelMapCommand,
        LERandCommand,
        CreateConnectionCommand,
        ReadRemoteExtendedFeaturesCommand,
        DisconnectCommand,
        WriteLocalNameCommand,
        ReadLocalNameCommand,
    ],
    Field(discriminator="kind"),
]


# Execution status of a parsed command
CommandStatus = Literal["pending", "running", "success", "failed", "status_error"]


@dataclass
class CommandRecord:
    """Record of one command execution and the lines it rendered."""

    name: str
    kind: str
    status: CommandStatus = "pending"
    error: Optional[str] = None
    status_code: Optional[int] = None
    output: List[str] = field(default_factory=list)
    started_at: Optional[float] = None
    completed_at: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "kind": self.kind,
            "status": self.status,
            "error": self.error,
            "status_code": self.status_code,
            "output": list(self.output),
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }

    def mark_started(self) -> None:
        """Mark command as started."""
        self.status = "running"
        self.started_at = time.time()

    def mark_success(self) -> None:
        """Mark command as successful."""
        self.status = "success"
        self.completed_at = time.time()

    def mark_failed(self, error: str) -> None:
        """Mark command as failed at the transport level."""
        self.status = "failed"
        self.error = error
        self.completed_at = time.time()

    def mark_status_error(self, status_code: int, error: str) -> None:
        """Mark command as answered with a non-success controller status."""
        self.status = "status_error"
        self.status_code = status_code
        self.error = error
        self.completed_at = time.time()

    def is_complete(self) -> bool:
        """Check if command execution is complete."""
        return self.status in {"success", "failed", "status_error"}

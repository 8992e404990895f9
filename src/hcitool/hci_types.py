"""Bluetooth domain values consumed and produced by HCI commands.

These types only describe the values a command carries and the fields the
controller hands back; encoding them onto the wire is the controller's job.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import Iterable, List, Optional, Type, TypeVar

_ADDRESS_PATTERN = re.compile(r"[0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5}")

E = TypeVar("E", bound=Enum)


@dataclass(frozen=True)
class Address:
    """48-bit Bluetooth device address (BD_ADDR) in display byte order."""

    octets: bytes

    def __post_init__(self) -> None:
        if len(self.octets) != 6:
            raise ValueError(
                f"Address must have 6 octets, got {len(self.octets)}"
            )

    @classmethod
    def from_string(cls, value: str) -> Address:
        """Parse ``XX:XX:XX:XX:XX:XX`` (case-insensitive)."""
        if not _ADDRESS_PATTERN.fullmatch(value):
            raise ValueError(f"Malformed Bluetooth address '{value}'")
        return cls(bytes(int(part, 16) for part in value.split(":")))

    @property
    def raw_value(self) -> str:
        """Canonical upper-case textual form."""
        return ":".join(f"{octet:02X}" for octet in self.octets)

    def to_little_endian(self) -> bytes:
        """Return the octets in the order HCI transmits them."""
        return self.octets[::-1]

    def __str__(self) -> str:
        return self.raw_value


class HCIStatus(IntEnum):
    """Subset of HCI error codes a controller can report."""

    success = 0x00
    unknown_command = 0x01
    unknown_connection_identifier = 0x02
    hardware_failure = 0x03
    page_timeout = 0x04
    authentication_failure = 0x05
    pin_or_key_missing = 0x06
    memory_capacity_exceeded = 0x07
    connection_timeout = 0x08
    connection_limit_exceeded = 0x09
    acl_connection_already_exists = 0x0B
    command_disallowed = 0x0C
    rejected_limited_resources = 0x0D
    rejected_security = 0x0E
    rejected_personal_device = 0x0F
    host_timeout = 0x10
    unsupported_feature_or_parameter = 0x11
    invalid_command_parameters = 0x12
    remote_user_terminated_connection = 0x13
    remote_low_resources = 0x14
    remote_power_off = 0x15
    connection_terminated_by_local_host = 0x16
    repeated_attempts = 0x17
    pairing_not_allowed = 0x18
    unsupported_remote_feature = 0x1A
    unspecified_error = 0x1F
    role_change_not_allowed = 0x21
    lmp_response_timeout = 0x22
    controller_busy = 0x3A
    unacceptable_connection_parameters = 0x3B
    advertising_timeout = 0x3C
    connection_failed_to_be_established = 0x3E
    unknown_advertising_identifier = 0x42


def humanize(name: str) -> str:
    """Turn an enum member name into a readable label."""
    words = name.split("_")
    return " ".join(
        word.upper() if word in _ACRONYMS else word.capitalize()
        for word in words
    )


_ACRONYMS = {
    "acl",
    "lmp",
    "le",
    "edr",
    "phy",
    "sco",
    "esco",
    "ltk",
    "dhkey",
    "cqddr",
    "afh",
    "ssp",
    "rssi",
    "br",
    "tx",
    "rx",
    "cvsd",
}


def status_name(status: int) -> str:
    """Return a readable name for an HCI status code."""
    try:
        return humanize(HCIStatus(status).name)
    except ValueError:
        return f"Unknown Status (0x{status:02X})"


class AllowRoleSwitch(IntEnum):
    """Whether the remote device may become the central of a new link."""

    disallowed = 0x00
    allowed = 0x01


class ClockOffset(IntFlag):
    """Clock offset field; bits 0-14 carry the offset, bit 15 marks it valid."""

    valid = 0x8000


class PacketType(IntFlag):
    """ACL packet types a BR/EDR connection may use."""

    no_2_dh1 = 0x0002
    no_3_dh1 = 0x0004
    dm1 = 0x0008
    dh1 = 0x0010
    no_2_dh3 = 0x0100
    no_3_dh3 = 0x0200
    dm3 = 0x0400
    dh3 = 0x0800
    no_2_dh5 = 0x1000
    no_3_dh5 = 0x2000
    dm5 = 0x4000
    dh5 = 0x8000


class LowEnergyEvent(IntFlag):
    """Bits of the LE event mask."""

    connection_complete = 1 << 0
    advertising_report = 1 << 1
    connection_update_complete = 1 << 2
    read_remote_features_complete = 1 << 3
    long_term_key_request = 1 << 4
    remote_connection_parameter_request = 1 << 5
    data_length_change = 1 << 6
    read_local_p256_public_key_complete = 1 << 7
    generate_dhkey_complete = 1 << 8
    enhanced_connection_complete = 1 << 9
    directed_advertising_report = 1 << 10
    phy_update_complete = 1 << 11
    extended_advertising_report = 1 << 12
    periodic_advertising_sync_established = 1 << 13
    periodic_advertising_report = 1 << 14
    periodic_advertising_sync_lost = 1 << 15
    scan_timeout = 1 << 16
    advertising_set_terminated = 1 << 17
    scan_request_received = 1 << 18
    channel_selection_algorithm = 1 << 19


class LowEnergyFeature(IntFlag):
    """LE features reported by the local controller."""

    encryption = 1 << 0
    connection_parameters_request_procedure = 1 << 1
    extended_reject_indication = 1 << 2
    slave_initiated_features_exchange = 1 << 3
    le_ping = 1 << 4
    le_data_packet_length_extension = 1 << 5
    ll_privacy = 1 << 6
    extended_scanner_filter_policies = 1 << 7
    le_2m_phy = 1 << 8
    stable_modulation_index_tx = 1 << 9
    stable_modulation_index_rx = 1 << 10
    le_coded_phy = 1 << 11
    le_extended_advertising = 1 << 12
    le_periodic_advertising = 1 << 13
    channel_selection_algorithm_2 = 1 << 14
    le_power_class_1 = 1 << 15
    minimum_number_of_used_channels = 1 << 16


class LMPFeature(IntFlag):
    """LMP features of page 0 of a remote device's feature mask."""

    three_slot_packets = 1 << 0
    five_slot_packets = 1 << 1
    encryption = 1 << 2
    slot_offset = 1 << 3
    timing_accuracy = 1 << 4
    role_switch = 1 << 5
    hold_mode = 1 << 6
    sniff_mode = 1 << 7
    power_control_requests = 1 << 9
    cqddr = 1 << 10
    sco_link = 1 << 11
    hv2_packets = 1 << 12
    hv3_packets = 1 << 13
    mu_law_log_synchronous_data = 1 << 14
    a_law_log_synchronous_data = 1 << 15
    cvsd_synchronous_data = 1 << 16
    paging_parameter_negotiation = 1 << 17
    power_control = 1 << 18
    transparent_synchronous_data = 1 << 19
    broadcast_encryption = 1 << 23
    edr_acl_2_mbps_mode = 1 << 25
    edr_acl_3_mbps_mode = 1 << 26
    enhanced_inquiry_scan = 1 << 27
    interlaced_inquiry_scan = 1 << 28
    interlaced_page_scan = 1 << 29
    rssi_with_inquiry_results = 1 << 30
    extended_sco_link = 1 << 31
    afh_capable_slave = 1 << 35
    afh_classification_slave = 1 << 36
    br_edr_not_supported = 1 << 37
    le_supported_controller = 1 << 38
    sniff_subrating = 1 << 41
    pause_encryption = 1 << 42
    afh_capable_master = 1 << 43
    afh_classification_master = 1 << 44
    extended_inquiry_response = 1 << 48
    simultaneous_le_and_br_edr_controller = 1 << 49
    secure_simple_pairing_controller = 1 << 51
    encapsulated_pdu = 1 << 52
    link_supervision_timeout_changed_event = 1 << 56
    inquiry_tx_power_level = 1 << 57
    enhanced_power_control = 1 << 58
    extended_features = 1 << 63


class LowEnergyAddressType(IntEnum):
    """Peer address type used by allow-list commands."""

    public = 0x00
    random = 0x01


class OwnAddressType(IntEnum):
    """Address type the local controller uses in scan requests."""

    public = 0x00
    random = 0x01
    resolvable_or_public = 0x02
    resolvable_or_random = 0x03


class ScanType(IntEnum):
    """LE scan type."""

    passive = 0x00
    active = 0x01


class ScanFilterPolicy(IntEnum):
    """Which advertising packets the scanner accepts."""

    accept_all = 0x00
    allow_list_only = 0x01


def flag_members(value: IntFlag) -> List[IntFlag]:
    """Return the single-bit members set in ``value`` in declaration order."""
    return [member for member in type(value) if member in value]


def unknown_bits(value: IntFlag) -> List[int]:
    """Return the bit positions set in ``value`` without a named member."""
    known = 0
    for member in type(value):
        known |= int(member)
    leftover = int(value) & ~known
    return [bit for bit in range(leftover.bit_length()) if leftover >> bit & 1]


def member_by_name(enum_cls: Type[E], name: str) -> Optional[E]:
    """Case-insensitive member lookup that ignores ``_`` and ``-``."""
    wanted = _normalize(name)
    for member_name, member in enum_cls.__members__.items():
        if _normalize(member_name) == wanted:
            return member
    return None


def member_names(enum_cls: Iterable[Enum]) -> List[str]:
    """Return the command-line spelling of each member."""
    return [_normalize(member.name) for member in enum_cls]


def _normalize(name: str) -> str:
    return name.replace("_", "").replace("-", "").lower()


@dataclass(frozen=True)
class ConnectionCompleteEvent:
    """Result of a connection attempt."""

    status: int
    handle: int
    address: Optional[Address] = None

    @property
    def succeeded(self) -> bool:
        return self.status == HCIStatus.success


@dataclass(frozen=True)
class DisconnectionCompleteEvent:
    """Result of a disconnect request."""

    status: int
    handle: int
    reason: int


@dataclass(frozen=True)
class BufferSize:
    """LE ACL buffer information."""

    data_packet_length: int
    total_num_data_packets: int


@dataclass(frozen=True)
class AdvertisingReport:
    """One advertising report received while scanning."""

    address: Address
    address_type: int = LowEnergyAddressType.public
    event_type: int = 0
    rssi: Optional[int] = None
    data: bytes = b""


@dataclass(frozen=True)
class ChannelMap:
    """LE channel map of a connection (37 data channels)."""

    handle: int
    channel_map: bytes = field(default=b"\x00" * 5)

    def used_channels(self) -> List[int]:
        """Return the indexes of the channels marked used."""
        mask = int.from_bytes(self.channel_map, "little")
        return [channel for channel in range(37) if mask >> channel & 1]

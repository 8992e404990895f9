"""Render controller responses as human readable lines."""

from __future__ import annotations

from enum import IntFlag
from typing import Iterable, List, Sequence, Union

from .hci_types import (
    AdvertisingReport,
    BufferSize,
    ChannelMap,
    ConnectionCompleteEvent,
    DisconnectionCompleteEvent,
    LowEnergyAddressType,
    flag_members,
    humanize,
    status_name,
    unknown_bits,
)


def format_handle(handle: int) -> str:
    """Connection handles are shown as four hex digits."""
    return f"0x{handle:04X}"


def format_bytes(data: bytes) -> str:
    return " ".join(f"{byte:02X}" for byte in data)


def feature_names(features: Union[IntFlag, Iterable[IntFlag]]) -> List[str]:
    """Return readable names for a flag value or a sequence of flags.

    Bits without a known name are listed as ``Bit N`` so nothing reported
    by the controller is hidden.
    """
    if isinstance(features, IntFlag):
        members: Sequence[IntFlag] = flag_members(features)
        extra = unknown_bits(features)
    else:
        members = list(features)
        extra = []
    names = [humanize(member.name or "") for member in members]
    names.extend(f"Bit {bit}" for bit in extra)
    return names


def render_connection_complete(event: ConnectionCompleteEvent) -> List[str]:
    return [f"Connection handle = {format_handle(event.handle)}"]


def render_remote_features(
    page_number: int, features: Sequence[IntFlag]
) -> List[str]:
    lines = [f"LMP Features (page {page_number}):"]
    names = feature_names(features)
    if names:
        lines.extend(f"  {name}" for name in names)
    else:
        lines.append("  (none)")
    return lines


def render_le_features(features: IntFlag) -> List[str]:
    lines = [f"LE Features: 0x{int(features):016X}"]
    lines.extend(f"  {name}" for name in feature_names(features))
    return lines


def render_buffer_size(buffer_size: BufferSize) -> List[str]:
    return [
        "HC LE Data Packet Length: "
        f"0x{buffer_size.data_packet_length:04X}",
        "HC Total Num LE Data Packets: "
        f"0x{buffer_size.total_num_data_packets:04X}",
    ]


def render_advertising_reports(
    reports: Sequence[AdvertisingReport],
) -> List[str]:
    if not reports:
        return ["No advertising reports received."]
    lines = [f"{len(reports)} advertising report(s):"]
    for report in reports:
        try:
            address_type = LowEnergyAddressType(report.address_type).name
        except ValueError:
            address_type = f"0x{report.address_type:02X}"
        parts = [f"  {report.address} ({address_type})"]
        if report.rssi is not None:
            parts.append(f"rssi={report.rssi}dBm")
        if report.data:
            parts.append(f"data={format_bytes(report.data)}")
        lines.append(" ".join(parts))
    return lines


def render_channel_map(channel_map: ChannelMap) -> List[str]:
    used = channel_map.used_channels()
    channels = ", ".join(str(channel) for channel in used) or "none"
    return [
        f"Connection handle = {format_handle(channel_map.handle)}",
        f"Channel map: {format_bytes(channel_map.channel_map)}",
        f"Used channels ({len(used)}): {channels}",
    ]


def render_disconnection(event: DisconnectionCompleteEvent) -> List[str]:
    lines = [f"Connection handle = {format_handle(event.handle)}"]
    lines.append(f"Reason: {status_name(event.reason)}")
    return lines

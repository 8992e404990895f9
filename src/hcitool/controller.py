"""Controller capability set consumed by the command executor.

The executor talks to any object providing these operations. Real
implementations (HCI sockets, vendor transports) live outside this package
and are selected with ``HCITOOL_CONTROLLER``; ``DryRunController`` answers
every request locally.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from .const import DEFAULT_COMMAND_TIMEOUT
from .exception import ControllerUnavailable
from .hci_types import (
    AdvertisingReport,
    Address,
    AllowRoleSwitch,
    BufferSize,
    ChannelMap,
    ClockOffset,
    ConnectionCompleteEvent,
    DisconnectionCompleteEvent,
    HCIStatus,
    LMPFeature,
    LowEnergyAddressType,
    LowEnergyEvent,
    LowEnergyFeature,
    OwnAddressType,
    PacketType,
    ScanFilterPolicy,
    ScanType,
)

logger = logging.getLogger(__name__)


class HostControllerInterface(Protocol):
    """Blocking operations of a local Bluetooth controller.

    Every call blocks until the controller answers or ``timeout``
    milliseconds elapse. Transport failures raise
    ``ControllerOperationFailed``; a non-success command status raises
    ``ControllerStatusError``. ``create_connection`` and ``disconnect``
    report the status of the completion event in their return value
    instead.
    """

    def create_connection(
        self,
        address: Address,
        packet_type: PacketType,
        page_scan_repetition_mode: int,
        clock_offset: ClockOffset,
        allow_role_switch: AllowRoleSwitch,
        timeout: int,
    ) -> ConnectionCompleteEvent: ...

    def read_remote_extended_features(
        self, handle: int, page_number: int, timeout: int
    ) -> Sequence[LMPFeature]: ...

    def disconnect(
        self, handle: int, reason: int, timeout: int
    ) -> DisconnectionCompleteEvent: ...

    def le_scan(
        self, duration: int, filter_duplicates: bool
    ) -> Sequence[AdvertisingReport]: ...

    def le_set_event_mask(
        self, event_mask: LowEnergyEvent, timeout: int
    ) -> None: ...

    def le_set_random_address(self, address: Address, timeout: int) -> None: ...

    def le_clear_white_list(self, timeout: int) -> None: ...

    def le_create_connection_cancel(self, timeout: int) -> None: ...

    def le_read_buffer_size(self, timeout: int) -> BufferSize: ...

    def le_read_local_supported_features(
        self, timeout: int
    ) -> LowEnergyFeature: ...

    def le_read_white_list_size(self, timeout: int) -> int: ...

    def le_add_device_to_white_list(
        self,
        address_type: LowEnergyAddressType,
        address: Address,
        timeout: int,
    ) -> None: ...

    def le_remove_device_from_white_list(
        self,
        address_type: LowEnergyAddressType,
        address: Address,
        timeout: int,
    ) -> None: ...

    def le_set_scan_parameters(
        self,
        scan_type: ScanType,
        interval: int,
        window: int,
        own_address_type: OwnAddressType,
        filter_policy: ScanFilterPolicy,
        timeout: int,
    ) -> None: ...

    def le_set_advertise_enable(self, enable: bool, timeout: int) -> None: ...

    def le_set_advertising_data(self, data: bytes, timeout: int) -> None: ...

    def le_read_channel_map(self, handle: int, timeout: int) -> ChannelMap: ...

    def le_rand(self, timeout: int) -> int: ...

    def write_local_name(self, name: str, timeout: int) -> None: ...

    def read_local_name(self, timeout: int) -> str: ...


class DryRunController:
    """Controller that records and logs requests without touching hardware."""

    DEFAULT_HANDLE = 0x0001

    def __init__(self) -> None:
        self.calls: List[Tuple[str, dict]] = []

    def _record(self, operation: str, **kwargs: Any) -> None:
        self.calls.append((operation, kwargs))
        logger.info("dry-run %s %s", operation, kwargs)

    def create_connection(
        self,
        address: Address,
        packet_type: PacketType,
        page_scan_repetition_mode: int,
        clock_offset: ClockOffset,
        allow_role_switch: AllowRoleSwitch,
        timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> ConnectionCompleteEvent:
        self._record(
            "create_connection",
            address=address,
            packet_type=packet_type,
            page_scan_repetition_mode=page_scan_repetition_mode,
            clock_offset=clock_offset,
            allow_role_switch=allow_role_switch,
            timeout=timeout,
        )
        return ConnectionCompleteEvent(
            status=HCIStatus.success,
            handle=self.DEFAULT_HANDLE,
            address=address,
        )

    def read_remote_extended_features(
        self,
        handle: int,
        page_number: int,
        timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> Sequence[LMPFeature]:
        self._record(
            "read_remote_extended_features",
            handle=handle,
            page_number=page_number,
            timeout=timeout,
        )
        return []

    def disconnect(
        self, handle: int, reason: int, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> DisconnectionCompleteEvent:
        self._record("disconnect", handle=handle, reason=reason, timeout=timeout)
        return DisconnectionCompleteEvent(
            status=HCIStatus.success, handle=handle, reason=reason
        )

    def le_scan(
        self, duration: int, filter_duplicates: bool = True
    ) -> Sequence[AdvertisingReport]:
        self._record(
            "le_scan", duration=duration, filter_duplicates=filter_duplicates
        )
        return []

    def le_set_event_mask(
        self, event_mask: LowEnergyEvent, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> None:
        self._record("le_set_event_mask", event_mask=event_mask, timeout=timeout)

    def le_set_random_address(
        self, address: Address, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> None:
        self._record("le_set_random_address", address=address, timeout=timeout)

    def le_clear_white_list(self, timeout: int = DEFAULT_COMMAND_TIMEOUT) -> None:
        self._record("le_clear_white_list", timeout=timeout)

    def le_create_connection_cancel(
        self, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> None:
        self._record("le_create_connection_cancel", timeout=timeout)

    def le_read_buffer_size(
        self, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> BufferSize:
        self._record("le_read_buffer_size", timeout=timeout)
        return BufferSize(data_packet_length=0, total_num_data_packets=0)

    def le_read_local_supported_features(
        self, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> LowEnergyFeature:
        self._record("le_read_local_supported_features", timeout=timeout)
        return LowEnergyFeature(0)

    def le_read_white_list_size(
        self, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> int:
        self._record("le_read_white_list_size", timeout=timeout)
        return 0

    def le_add_device_to_white_list(
        self,
        address_type: LowEnergyAddressType,
        address: Address,
        timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        self._record(
            "le_add_device_to_white_list",
            address_type=address_type,
            address=address,
            timeout=timeout,
        )

    def le_remove_device_from_white_list(
        self,
        address_type: LowEnergyAddressType,
        address: Address,
        timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        self._record(
            "le_remove_device_from_white_list",
            address_type=address_type,
            address=address,
            timeout=timeout,
        )

    def le_set_scan_parameters(
        self,
        scan_type: ScanType,
        interval: int,
        window: int,
        own_address_type: OwnAddressType,
        filter_policy: ScanFilterPolicy,
        timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        self._record(
            "le_set_scan_parameters",
            scan_type=scan_type,
            interval=interval,
            window=window,
            own_address_type=own_address_type,
            filter_policy=filter_policy,
            timeout=timeout,
        )

    def le_set_advertise_enable(
        self, enable: bool, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> None:
        self._record("le_set_advertise_enable", enable=enable, timeout=timeout)

    def le_set_advertising_data(
        self, data: bytes, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> None:
        self._record("le_set_advertising_data", data=data, timeout=timeout)

    def le_read_channel_map(
        self, handle: int, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> ChannelMap:
        self._record("le_read_channel_map", handle=handle, timeout=timeout)
        return ChannelMap(handle=handle)

    def le_rand(self, timeout: int = DEFAULT_COMMAND_TIMEOUT) -> int:
        self._record("le_rand", timeout=timeout)
        return 0

    def write_local_name(
        self, name: str, timeout: int = DEFAULT_COMMAND_TIMEOUT
    ) -> None:
        self._record("write_local_name", name=name, timeout=timeout)

    def read_local_name(self, timeout: int = DEFAULT_COMMAND_TIMEOUT) -> str:
        self._record("read_local_name", timeout=timeout)
        return ""


def load_controller(target: str) -> HostControllerInterface:
    """Instantiate the controller named by ``package.module:factory``.

    The factory is called without arguments and must return an object
    providing the ``HostControllerInterface`` operations.
    """
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ControllerUnavailable(
            f"Controller target '{target}' must look like 'module:factory'"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ControllerUnavailable(
            f"Cannot import controller module '{module_name}': {exc}"
        ) from exc
    factory = getattr(module, attribute, None)
    if factory is None or not callable(factory):
        raise ControllerUnavailable(
            f"'{attribute}' is not a callable in module '{module_name}'"
        )
    logger.debug("Loading controller from %s", target)
    try:
        return factory()
    except Exception as exc:
        raise ControllerUnavailable(
            f"Controller factory '{target}' failed: {exc}"
        ) from exc


def resolve_controller(
    target: Optional[str], dry_run: bool
) -> HostControllerInterface:
    """Pick the dry-run controller or load the configured one."""
    if dry_run:
        return DryRunController()
    if not target:
        raise ControllerUnavailable(
            "No controller configured; set HCITOOL_CONTROLLER or use --dry-run"
        )
    return load_controller(target)

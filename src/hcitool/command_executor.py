"""Command execution against a host controller interface."""

from __future__ import annotations

import logging
from typing import List

from typing_extensions import assert_never

from .commands_model import (
    Command,
    CommandRecord,
    CreateConnectionCommand,
    DisconnectCommand,
    LEAddDeviceToWhiteListCommand,
    LEClearWhiteListCommand,
    LECreateConnectionCancelCommand,
    LEReadBufferSizeCommand,
    LEReadChannelMapCommand,
    LEReadLocalSupportedFeaturesCommand,
    LEReadWhiteListSizeCommand,
    LERandCommand,
    LERemoveDeviceFromWhiteListCommand,
    LEScanCommand,
    LESetAdvertiseEnableCommand,
    LESetAdvertisingDataCommand,
    LESetEventMaskCommand,
    LESetRandomAddressCommand,
    LESetScanParametersCommand,
    ReadLocalNameCommand,
    ReadRemoteExtendedFeaturesCommand,
    WriteLocalNameCommand,
)
from .const import DEFAULT_COMMAND_TIMEOUT
from .controller import HostControllerInterface
from .exception import ControllerOperationFailed, ControllerStatusError
from .hci_types import ConnectionCompleteEvent, HCIStatus, status_name
from .serializers import (
    format_bytes,
    render_advertising_reports,
    render_buffer_size,
    render_channel_map,
    render_connection_complete,
    render_disconnection,
    render_le_features,
    render_remote_features,
)

logger = logging.getLogger(__name__)


class CommandExecutor:
    """Executes parsed commands on a controller and renders the results."""

    def __init__(
        self,
        controller: HostControllerInterface,
        command_timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ):
        """Execute commands on ``controller``.

        Args:
            controller: Any object providing the controller operations.
            command_timeout: Deadline in milliseconds for commands that do
                not carry their own timeout.
        """
        self.controller = controller
        self.command_timeout = command_timeout

    def execute(self, command: Command) -> CommandRecord:
        """Run ``command`` once and return its execution record.

        Controller failures are recorded, logged and rendered, never
        retried and never raised.
        """
        record = CommandRecord(name=command.command_name, kind=command.kind)
        record.mark_started()
        try:
            self._execute_command(command, record.output)
            record.mark_success()

        except ControllerStatusError as exc:
            record.output.append(str(exc))
            record.mark_status_error(exc.status, str(exc))
            logger.warning(
                "Command %s completed with status %s",
                command.command_name,
                exc.status_name,
            )

        except ControllerOperationFailed as exc:
            record.output.append(f"Controller error: {exc}")
            record.mark_failed(str(exc))
            logger.error(
                "Command %s failed: %s",
                command.command_name,
                exc,
                exc_info=True,
            )

        except Exception as exc:
            message = f"{type(exc).__name__}: {exc}"
            record.output.append(f"Controller error: {message}")
            record.mark_failed(message)
            logger.error(
                "Command %s failed: %s",
                command.command_name,
                message,
                exc_info=True,
            )

        return record

    def _connect(
        self, command: CreateConnectionCommand | ReadRemoteExtendedFeaturesCommand
    ) -> ConnectionCompleteEvent:
        logger.debug(
            "Creating connection to %s (timeout %sms)",
            command.address,
            command.timeout,
        )
        return self.controller.create_connection(
            address=command.address,
            packet_type=command.packet_type,
            page_scan_repetition_mode=command.page_scan_repetition_mode,
            clock_offset=command.clock_offset,
            allow_role_switch=command.allow_role_switch,
            timeout=command.timeout,
        )

    @staticmethod
    def _check_connection(
        event: ConnectionCompleteEvent, output: List[str]
    ) -> None:
        output.extend(render_connection_complete(event))
        if not event.succeeded:
            raise ControllerStatusError(
                event.status,
                f"Connection Error: {status_name(event.status)}",
            )

    def _execute_command(self, command: Command, output: List[str]) -> None:
        """Invoke the controller operation matching the command kind."""
        controller = self.controller
        timeout = self.command_timeout

        if isinstance(command, LEScanCommand):
            reports = controller.le_scan(
                duration=command.duration,
                filter_duplicates=command.filter_duplicates,
            )
            output.extend(render_advertising_reports(reports))

        elif isinstance(command, LESetRandomAddressCommand):
            controller.le_set_random_address(
                address=command.address, timeout=timeout
            )
            output.append(f"Random address set to {command.address}")

        elif isinstance(command, LESetEventMaskCommand):
            mask = command.mask
            controller.le_set_event_mask(event_mask=mask, timeout=timeout)
            output.append(f"LE event mask set to 0x{int(mask):016X}")

        elif isinstance(command, LEClearWhiteListCommand):
            controller.le_clear_white_list(timeout=timeout)
            output.append("Allow list cleared")

        elif isinstance(command, LECreateConnectionCancelCommand):
            controller.le_create_connection_cancel(timeout=timeout)
            output.append("Pending connection cancelled")

        elif isinstance(command, LEReadLocalSupportedFeaturesCommand):
            features = controller.le_read_local_supported_features(
                timeout=timeout
            )
            output.extend(render_le_features(features))

        elif isinstance(command, LEReadBufferSizeCommand):
            buffer_size = controller.le_read_buffer_size(timeout=timeout)
            output.extend(render_buffer_size(buffer_size))

        elif isinstance(command, LEReadWhiteListSizeCommand):
            size = controller.le_read_white_list_size(timeout=timeout)
            output.append(f"Allow list size: {size}")

        elif isinstance(command, LEAddDeviceToWhiteListCommand):
            controller.le_add_device_to_white_list(
                address_type=command.address_type,
                address=command.address,
                timeout=timeout,
            )
            output.append(
                f"Added {command.address} ({command.address_type.name}) "
                "to the allow list"
            )

        elif isinstance(command, LERemoveDeviceFromWhiteListCommand):
            controller.le_remove_device_from_white_list(
                address_type=command.address_type,
                address=command.address,
                timeout=timeout,
            )
            output.append(
                f"Removed {command.address} ({command.address_type.name}) "
                "from the allow list"
            )

        elif isinstance(command, LESetScanParametersCommand):
            controller.le_set_scan_parameters(
                scan_type=command.scan_type,
                interval=command.interval,
                window=command.window,
                own_address_type=command.own_address_type,
                filter_policy=command.filter_policy,
                timeout=timeout,
            )
            output.append(
                f"Scan parameters set: {command.scan_type.name} scan, "
                f"interval 0x{command.interval:04X}, "
                f"window 0x{command.window:04X}"
            )

        elif isinstance(command, LESetAdvertiseEnableCommand):
            controller.le_set_advertise_enable(
                enable=command.enable, timeout=timeout
            )
            state = "enabled" if command.enable else "disabled"
            output.append(f"Advertising {state}")

        elif isinstance(command, LESetAdvertisingDataCommand):
            controller.le_set_advertising_data(
                data=command.data, timeout=timeout
            )
            output.append(
                f"Advertising data ({len(command.data)} bytes): "
                f"{format_bytes(command.data)}"
            )

        elif isinstance(command, LEReadChannelMapCommand):
            channel_map = controller.le_read_channel_map(
                handle=command.handle, timeout=timeout
            )
            output.extend(render_channel_map(channel_map))

        elif isinstance(command, LERandCommand):
            value = controller.le_rand(timeout=timeout)
            output.append(f"Random number: 0x{value:016X}")

        elif isinstance(command, CreateConnectionCommand):
            self._check_connection(self._connect(command), output)

        elif isinstance(command, ReadRemoteExtendedFeaturesCommand):
            event = self._connect(command)
            self._check_connection(event, output)
            features = controller.read_remote_extended_features(
                handle=event.handle,
                page_number=command.page_number,
                timeout=timeout,
            )
            output.extend(render_remote_features(command.page_number, features))

        elif isinstance(command, DisconnectCommand):
            event = controller.disconnect(
                handle=command.handle, reason=command.reason, timeout=timeout
            )
            if event.status != HCIStatus.success:
                raise ControllerStatusError(event.status)
            output.extend(render_disconnection(event))

        elif isinstance(command, WriteLocalNameCommand):
            controller.write_local_name(name=command.name, timeout=timeout)
            output.append(f"Local name set to '{command.name}'")

        elif isinstance(command, ReadLocalNameCommand):
            name = controller.read_local_name(timeout=timeout)
            output.append(f"Local name: '{name}'")

        else:
            assert_never(command)

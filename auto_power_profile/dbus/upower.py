#!/usr/bin/env python3
"""
UPower client used as the power source monitor.

Reads AC/battery state, battery percentage and warning level from the UPower
display device and reports property changes of the display device and of the
AC line power device.
"""

import logging
from typing import List, Optional

from dasbus.client.proxy import disconnect_proxy
from dasbus.connection import SystemMessageBus
from dasbus.error import DBusError
from gi.repository import GLib

from auto_power_profile.exceptions import ServiceUnavailableError
from auto_power_profile.modules.policy import PowerState
from auto_power_profile.modules.signals import Signal, Subscription
from auto_power_profile.types import DeviceState, DeviceType, WarningLevel

from .constants import (
    DBUS_PROPERTIES_INTERFACE,
    DISPLAY_DEVICE_PATH,
    UPOWER_BUS_NAME,
    UPOWER_DEVICE_INTERFACE,
    UPOWER_INTERFACE_NAME,
    UPOWER_OBJECT_PATH,
)

log = logging.getLogger(__name__)

DISCHARGING_STATES = (DeviceState.DISCHARGING, DeviceState.PENDING_DISCHARGE)


class UPowerMonitor:
    """
    Power source monitor backed by UPower.

    The AC line power device, when one exists, is the primary source for the
    AC state. Without one the charge state of the display device decides.
    """

    def __init__(self, bus=None):
        self._bus = bus if bus is not None else SystemMessageBus()
        self._device = None
        self._line_power = None
        self._properties_proxies: List = []
        self._last_state: PowerState = PowerState(has_battery=False, on_battery=False, percentage=None)
        self.changed = Signal("power-source")

    def connect(self) -> None:
        """
        Connect to the UPower display device.

        Raises:
            ServiceUnavailableError: If UPower is not reachable
        """
        try:
            self._device = self._bus.get_proxy(
                UPOWER_BUS_NAME, DISPLAY_DEVICE_PATH, interface_name=UPOWER_DEVICE_INTERFACE
            )
            # touch a property, proxies are only introspected on first use
            self._device.State
            self._watch(DISPLAY_DEVICE_PATH)
        except (DBusError, GLib.Error) as e:
            self._device = None
            raise ServiceUnavailableError("UPower", str(e)) from e

        self._find_line_power_device()
        log.info("Connected to UPower")

    def _watch(self, object_path: str) -> None:
        proxy = self._bus.get_proxy(
            UPOWER_BUS_NAME, object_path, interface_name=DBUS_PROPERTIES_INTERFACE
        )
        proxy.PropertiesChanged.connect(self._on_properties_changed)
        self._properties_proxies.append(proxy)

    def _find_line_power_device(self) -> None:
        try:
            upower = self._bus.get_proxy(
                UPOWER_BUS_NAME, UPOWER_OBJECT_PATH, interface_name=UPOWER_INTERFACE_NAME
            )
            for device_path in upower.EnumerateDevices():
                device = self._bus.get_proxy(
                    UPOWER_BUS_NAME, device_path, interface_name=UPOWER_DEVICE_INTERFACE
                )
                if device.Type == DeviceType.LINE_POWER:
                    self._line_power = device
                    self._watch(device_path)
                    log.debug(f"Using line power device {device_path}")
                    break
        except (DBusError, GLib.Error) as e:
            log.warning(f"Failed to find line power device: {e}")
            return

        if self._line_power is None:
            log.warning("No AC line power device found")

    def _on_properties_changed(self, interface: str, changed, invalidated) -> None:
        if interface == UPOWER_DEVICE_INTERFACE:
            self.changed.emit()

    def on_change(self, callback) -> Subscription:
        return self.changed.connect(callback)

    def _ac_online(self) -> Optional[bool]:
        if self._line_power is None:
            return None
        try:
            return bool(self._line_power.Online)
        except (DBusError, GLib.Error) as e:
            log.debug(f"Unable to read line power state: {e}")
            return None

    def get_warning_level(self) -> WarningLevel:
        try:
            return WarningLevel(self._device.WarningLevel)
        except ValueError:
            return WarningLevel.UNKNOWN

    def get_state(self) -> PowerState:
        """
        Read the current power source state.

        :return: PowerState of the display device, the last known state when
            UPower does not answer, AC when it is not connected
        """
        if self._device is None:
            return PowerState(has_battery=False, on_battery=False, percentage=None)

        try:
            self._last_state = self._read_state()
        except (DBusError, GLib.Error) as e:
            log.warning(f"Unable to read power source state: {e}")
        return self._last_state

    def _read_state(self) -> PowerState:
        try:
            state = DeviceState(self._device.State)
        except ValueError:
            state = DeviceState.UNKNOWN

        has_battery = state != DeviceState.UNKNOWN
        ac_online = self._ac_online()
        on_battery = (not ac_online) if ac_online is not None else state in DISCHARGING_STATES

        return PowerState(
            has_battery=has_battery,
            on_battery=on_battery,
            percentage=float(self._device.Percentage) if has_battery else None,
            warning_level=self.get_warning_level(),
        )

    def destroy(self) -> None:
        for proxy in self._properties_proxies:
            proxy.PropertiesChanged.disconnect(self._on_properties_changed)
            disconnect_proxy(proxy)
        self._properties_proxies = []
        self.changed.clear()
        self._line_power = None
        self._device = None

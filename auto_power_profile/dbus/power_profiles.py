#!/usr/bin/env python3
"""
power-profiles-daemon client used as the profile controller.

Reads and switches the active profile and reports property changes,
including the PerformanceDegraded reason.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dasbus.client.proxy import disconnect_proxy
from dasbus.connection import SystemMessageBus
from dasbus.error import DBusError
from dasbus.typing import get_native
from gi.repository import GLib

from auto_power_profile.exceptions import ServiceUnavailableError
from auto_power_profile.modules.signals import Signal, Subscription

from .constants import DBUS_PROPERTIES_INTERFACE, PLACEHOLDER_DRIVER, POWER_PROFILES_SERVICES

log = logging.getLogger(__name__)


@dataclass
class DriverStatus:
    """Result of the platform driver check."""
    active: bool
    has_drivers: bool


class PowerProfilesController:
    """
    Profile controller backed by power-profiles-daemon.

    Tries the org.freedesktop.UPower.PowerProfiles name first and falls back
    to the legacy net.hadess.PowerProfiles name.
    """

    def __init__(self, bus=None):
        self._bus = bus if bus is not None else SystemMessageBus()
        self._proxy = None
        self._properties = None
        self.interface_name: Optional[str] = None
        self.changed = Signal("power-profiles")

    def connect(self) -> None:
        """
        Connect to the first power profiles service that answers.

        Raises:
            ServiceUnavailableError: If no power profiles service is available
        """
        errors = []
        for bus_name, object_path in POWER_PROFILES_SERVICES:
            try:
                proxy = self._bus.get_proxy(bus_name, object_path, interface_name=bus_name)
                # touch a property, proxies are only introspected on first use
                proxy.ActiveProfile
                properties = self._bus.get_proxy(
                    bus_name, object_path, interface_name=DBUS_PROPERTIES_INTERFACE
                )
                properties.PropertiesChanged.connect(self._on_properties_changed)
            except (DBusError, GLib.Error) as e:
                log.debug(f"{bus_name} not available: {e}")
                errors.append(f"{bus_name}: {e}")
                continue

            self._proxy = proxy
            self._properties = properties
            self.interface_name = bus_name
            log.info(f"Connected to {bus_name}")
            return

        raise ServiceUnavailableError("power-profiles-daemon", "; ".join(errors))

    def _on_properties_changed(self, interface: str, changed, invalidated) -> None:
        if interface != self.interface_name:
            return
        self.changed.emit(get_native(changed))

    def on_change(self, callback) -> Subscription:
        return self.changed.connect(callback)

    @property
    def active_profile(self) -> Optional[str]:
        """The currently active power profile, None when unknown."""
        if self._proxy is None:
            return None
        try:
            return self._proxy.ActiveProfile or None
        except (DBusError, GLib.Error) as e:
            log.warning(f"Unable to read active profile: {e}")
            return None

    def profiles(self) -> List[Dict[str, Any]]:
        """Profile descriptions with Profile, Driver, PlatformDriver and CpuDriver entries."""
        if self._proxy is None:
            return []
        try:
            return get_native(self._proxy.Profiles) or []
        except (DBusError, GLib.Error) as e:
            log.warning(f"Unable to read profiles: {e}")
            return []

    def list_profiles(self) -> List[str]:
        return [p["Profile"] for p in self.profiles() if p.get("Profile")]

    def set_active_profile(self, profile: str) -> bool:
        """
        Switch to a power profile.

        :param profile: The profile name to switch to
        :return: True if the switch was requested or is unnecessary, False otherwise
        """
        if self._proxy is None:
            log.debug(f"Cannot switch to profile '{profile}' - power profiles proxy not initialized yet")
            return False

        available = self.list_profiles()
        if not available:
            log.warning(f"Cannot switch to profile '{profile}' - power profiles daemon not responding properly")
            return False

        if profile == self.active_profile:
            return True

        if profile not in available:
            log.error(
                f"Cannot switch to profile '{profile}' - not in available profiles: {', '.join(available)}"
            )
            return False

        try:
            self._proxy.ActiveProfile = profile
        except (DBusError, GLib.Error) as e:
            log.error(f"Failed to switch to profile '{profile}': {e}")
            return False
        return True

    def validate_drivers(self) -> DriverStatus:
        """Check that the active profile is backed by a real platform or CPU driver."""
        active = self.active_profile
        profile = next((p for p in self.profiles() if p.get("Profile") == active), {})

        drivers = [profile.get(key) for key in ("Driver", "PlatformDriver", "CpuDriver")]
        return DriverStatus(
            active=bool(active),
            has_drivers=any(d and d != PLACEHOLDER_DRIVER for d in drivers),
        )

    def destroy(self) -> None:
        if self._properties is not None:
            self._properties.PropertiesChanged.disconnect(self._on_properties_changed)
            disconnect_proxy(self._properties)
            self._properties = None
        if self._proxy is not None:
            disconnect_proxy(self._proxy)
            self._proxy = None
        self.changed.clear()

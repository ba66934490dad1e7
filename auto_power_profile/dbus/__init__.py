#!/usr/bin/env python3
"""
D-Bus clients for auto-power-profile.

This package talks to UPower to follow the power source and to
power-profiles-daemon to read and switch the active power profile.
"""

from .upower import UPowerMonitor
from .power_profiles import PowerProfilesController, DriverStatus
from .constants import (
    UPOWER_BUS_NAME,
    DISPLAY_DEVICE_PATH,
    POWER_PROFILES_SERVICES,
)

__all__ = [
    # Clients
    "UPowerMonitor",
    "PowerProfilesController",
    "DriverStatus",
    # Constants
    "UPOWER_BUS_NAME",
    "DISPLAY_DEVICE_PATH",
    "POWER_PROFILES_SERVICES",
]

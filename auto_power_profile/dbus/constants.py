#!/usr/bin/env python3
"""
D-Bus constants for the UPower and power-profiles-daemon clients.

This module provides the D-Bus service names, object paths and interface
names used to read the power source state and to read and write the
active power profile.
"""

DBUS_PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

# UPower
UPOWER_BUS_NAME = "org.freedesktop.UPower"
UPOWER_OBJECT_PATH = "/org/freedesktop/UPower"
UPOWER_INTERFACE_NAME = "org.freedesktop.UPower"
UPOWER_DEVICE_INTERFACE = "org.freedesktop.UPower.Device"
DISPLAY_DEVICE_PATH = "/org/freedesktop/UPower/devices/DisplayDevice"

# power-profiles-daemon, newest name first; the interface name equals the bus name
POWER_PROFILES_SERVICES = [
    ("org.freedesktop.UPower.PowerProfiles", "/org/freedesktop/UPower/PowerProfiles"),
    ("net.hadess.PowerProfiles", "/net/hadess/PowerProfiles"),
]

# driver name power-profiles-daemon reports when no real driver is loaded
PLACEHOLDER_DRIVER = "placeholder"

# desktop notifications
NOTIFICATIONS_BUS_NAME = "org.freedesktop.Notifications"
NOTIFICATIONS_OBJECT_PATH = "/org/freedesktop/Notifications"
NOTIFICATIONS_INTERFACE_NAME = "org.freedesktop.Notifications"
NOTIFICATION_URGENCY_CRITICAL = 2

#!/usr/bin/env python3
"""
Desktop notifications through org.freedesktop.Notifications.

Used for the few problems the user has to act on: a missing power profiles
service and a missing platform driver.
"""

import logging
from typing import Dict, Optional

from dasbus.connection import SessionMessageBus
from dasbus.error import DBusError
from dasbus.typing import Byte, get_variant
from gi.repository import Gio, GLib

from auto_power_profile.dbus.constants import (
    NOTIFICATION_URGENCY_CRITICAL,
    NOTIFICATIONS_BUS_NAME,
    NOTIFICATIONS_INTERFACE_NAME,
    NOTIFICATIONS_OBJECT_PATH,
)

log = logging.getLogger(__name__)

TITLE = "Auto Power Profiles"
ICON = "dialog-warning-symbolic"
ACTION_DETAILS = "show-details"


class DesktopNotifier:
    """
    Shows critical notifications, each one replacing the previous.

    A notification can carry a "Show details" action that opens a URI.
    """

    def __init__(self, app_name: str, bus=None):
        self._app_name = app_name
        self._bus = bus
        self._proxy = None
        self._notification_id: int = 0
        self._uris: Dict[int, str] = {}

    def _get_proxy(self):
        if self._proxy is None:
            if self._bus is None:
                self._bus = SessionMessageBus()
            self._proxy = self._bus.get_proxy(
                NOTIFICATIONS_BUS_NAME,
                NOTIFICATIONS_OBJECT_PATH,
                interface_name=NOTIFICATIONS_INTERFACE_NAME,
            )
            self._proxy.ActionInvoked.connect(self._on_action_invoked)
        return self._proxy

    def notify(self, body: str, uri: Optional[str] = None) -> None:
        """
        Show a notification.

        :param body: Message text
        :param uri: Optional link opened by the "Show details" action
        """
        actions = [ACTION_DETAILS, "Show details"] if uri else []
        hints = {"urgency": get_variant(Byte, NOTIFICATION_URGENCY_CRITICAL)}
        try:
            self._notification_id = self._get_proxy().Notify(
                self._app_name, self._notification_id, ICON, TITLE, body, actions, hints, -1
            )
        except (DBusError, GLib.Error) as e:
            log.warning(f"Unable to show notification '{body}': {e}")
            return

        if uri:
            self._uris[self._notification_id] = uri

    def _on_action_invoked(self, notification_id: int, action_key: str) -> None:
        uri = self._uris.get(notification_id)
        if action_key != ACTION_DETAILS or uri is None:
            return
        try:
            Gio.AppInfo.launch_default_for_uri(uri, None)
        except GLib.Error as e:
            log.error(f"Unable to open {uri}: {e}")

    def destroy(self) -> None:
        if self._proxy is None:
            return
        if self._notification_id:
            try:
                self._proxy.CloseNotification(self._notification_id)
            except (DBusError, GLib.Error) as e:
                log.debug(f"Unable to close notification: {e}")
        self._proxy.ActionInvoked.disconnect(self._on_action_invoked)
        self._proxy = None
        self._notification_id = 0
        self._uris.clear()

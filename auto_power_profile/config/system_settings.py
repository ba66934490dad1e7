import logging
from typing import Optional

from gi.repository import Gio

from auto_power_profile.modules.signals import Signal, Subscription

POWER_SCHEMA = "org.gnome.settings-daemon.plugins.power"
POWER_SAVER_ON_LOW_BATTERY_KEY = "power-saver-profile-on-low-battery"


class GnomePowerSettings:
    """
    GNOME's "automatic power saver" switch, read through GSettings.

    When present it replaces the ``power-saver-on-low-battery`` INI key, so
    the daemon follows what the user set in the desktop's power panel.
    """

    def __init__(self, settings) -> None:
        self._settings = settings
        self.changed: Signal = Signal("gnome-power-settings")
        self._handler_id: Optional[int] = settings.connect(
            f"changed::{POWER_SAVER_ON_LOW_BATTERY_KEY}", self._on_changed
        )

    @classmethod
    def load(cls) -> Optional["GnomePowerSettings"]:
        """
        Open the GNOME power settings.

        :return: The settings, or None when the schema or the key is not installed
        """
        source = Gio.SettingsSchemaSource.get_default()
        schema = source.lookup(POWER_SCHEMA, True) if source is not None else None
        if schema is None or not schema.has_key(POWER_SAVER_ON_LOW_BATTERY_KEY):
            logging.info(f"{POWER_SCHEMA} not installed, using power-saver-on-low-battery from the config file")
            return None
        return cls(Gio.Settings.new(POWER_SCHEMA))

    @property
    def power_saver_on_low_battery(self) -> bool:
        return self._settings.get_boolean(POWER_SAVER_ON_LOW_BATTERY_KEY)

    def on_change(self, callback) -> Subscription:
        return self.changed.connect(callback)

    def _on_changed(self, settings, key) -> None:
        logging.debug(f"{key} changed to {self.power_saver_on_low_battery}")
        self.changed.emit()

    def destroy(self) -> None:
        if self._handler_id is not None:
            self._settings.disconnect(self._handler_id)
            self._handler_id = None
        self.changed.clear()

import logging
import signal
from typing import Optional

from gi.repository import GLib

from auto_power_profile.config.config import Config
from auto_power_profile.config.config_event_handler import ConfigFileMonitor
from auto_power_profile.config.system_settings import GnomePowerSettings
from auto_power_profile.dbus import PowerProfilesController, UPowerMonitor
from auto_power_profile.exceptions import ServiceUnavailableError
from auto_power_profile.globals import APP_NAME, SYSTEM_CONFIG_FILE
from auto_power_profile.modules.handler import AutoProfileHandler
from auto_power_profile.modules.windows import ProcessWindowEvents
from auto_power_profile.notifier import DesktopNotifier


class AutoPowerProfile:
    """
    One running instance of the daemon.

    Everything the daemon holds is owned here, created in :meth:`enable` and
    released in :meth:`disable`. UPower and power-profiles-daemon are
    connected from idle callbacks, independently of each other; the handler
    stays idle until both are attached.
    """

    def __init__(self, config_path: str, system_config_file: Optional[str] = SYSTEM_CONFIG_FILE) -> None:
        self.config_path = config_path
        self.system_config_file = system_config_file
        self.config = None
        self.system_settings = None
        self.config_monitor = None
        self.notifier = None
        self.handler = None
        self.window_events = None
        self.power_monitor = None
        self.profile_controller = None
        self._idle_ids = {}

    def enable(self) -> None:
        self.config = Config(system_config_file=self.system_config_file)
        self.config.set_path(self.config_path)
        if self.config.has_config():
            logging.info(f"Using settings defined in {', '.join(self.config.files)}")
        try:
            self.system_settings = GnomePowerSettings.load()
        except GLib.Error as e:
            logging.warning(f"Unable to read GNOME power settings: {e}")
        self.config.set_system_settings(self.system_settings)

        self.config_monitor = ConfigFileMonitor(self.config)
        try:
            self.config_monitor.start()
        except (GLib.Error, OSError) as e:
            logging.warning(f"Config file changes will not be picked up: {e}")

        self.notifier = DesktopNotifier(APP_NAME)
        self.handler = AutoProfileHandler(self.config, notifier=self.notifier)

        self.window_events = ProcessWindowEvents()
        self.handler.start(self.window_events)
        self.window_events.start()

        self.power_monitor = UPowerMonitor()
        self.profile_controller = PowerProfilesController()
        self._idle_ids = {
            "profile-controller": GLib.idle_add(self._connect_profile_controller),
            "power-monitor": GLib.idle_add(self._connect_power_monitor),
        }

    def _connect_power_monitor(self) -> bool:
        self._idle_ids.pop("power-monitor", None)
        try:
            self.power_monitor.connect()
        except ServiceUnavailableError as e:
            self.handler.service_unavailable(e)
        else:
            self.handler.attach_power_monitor(self.power_monitor)
        return GLib.SOURCE_REMOVE

    def _connect_profile_controller(self) -> bool:
        self._idle_ids.pop("profile-controller", None)
        try:
            self.profile_controller.connect()
        except ServiceUnavailableError as e:
            self.handler.service_unavailable(e)
        else:
            self.handler.attach_profile_controller(self.profile_controller)
        return GLib.SOURCE_REMOVE

    def disable(self) -> None:
        for source_id in self._idle_ids.values():
            GLib.source_remove(source_id)
        self._idle_ids = {}

        if self.handler is not None:
            self.handler.shutdown()
            self.handler = None
        if self.window_events is not None:
            self.window_events.stop()
            self.window_events = None
        if self.power_monitor is not None:
            self.power_monitor.destroy()
            self.power_monitor = None
        if self.profile_controller is not None:
            self.profile_controller.destroy()
            self.profile_controller = None
        if self.config_monitor is not None:
            self.config_monitor.stop()
            self.config_monitor = None
        if self.notifier is not None:
            self.notifier.destroy()
            self.notifier = None
        if self.system_settings is not None:
            self.config.set_system_settings(None)
            self.system_settings.destroy()
            self.system_settings = None
        self.config = None


def run_daemon(config_path: str, system_config_file: Optional[str] = SYSTEM_CONFIG_FILE) -> None:
    """Run a session on the GLib main loop until SIGINT or SIGTERM."""
    session = AutoPowerProfile(config_path, system_config_file)
    loop = GLib.MainLoop()

    def quit() -> bool:
        logging.info("Stopping, restoring balanced profile")
        session.disable()
        loop.quit()
        return GLib.SOURCE_REMOVE

    for signum in (signal.SIGINT, signal.SIGTERM):
        GLib.unix_signal_add(GLib.PRIORITY_HIGH, signum, quit)

    logging.info("Starting auto-power-profile daemon")
    session.enable()
    loop.run()

import logging
import os

from gi.repository import Gio

from auto_power_profile.config.config import Config

# events that can change the content of a watched config file
RELOAD_EVENTS = (
    Gio.FileMonitorEvent.CHANGES_DONE_HINT,
    Gio.FileMonitorEvent.CREATED,
    Gio.FileMonitorEvent.DELETED,
    Gio.FileMonitorEvent.MOVED_IN,
    Gio.FileMonitorEvent.MOVED_OUT,
    Gio.FileMonitorEvent.RENAMED,
)


class ConfigFileMonitor:
    """Reloads the configuration whenever one of its files is written, created, moved or deleted."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self._monitors = []

    def start(self) -> None:
        # watch the directories, editors replace the file instead of writing it in place
        directories = []
        for path in self.config.files:
            directory = os.path.dirname(path) or "."
            if directory not in directories:
                directories.append(directory)

        for directory_path in directories:
            if directory_path == os.path.dirname(self.config.path):
                os.makedirs(directory_path, exist_ok=True)
            elif not os.path.isdir(directory_path):
                continue
            monitor = Gio.File.new_for_path(directory_path).monitor_directory(Gio.FileMonitorFlags.WATCH_MOVES, None)
            self._monitors.append((monitor, monitor.connect("changed", self._on_changed)))
            logging.debug(f"watching {directory_path} for config changes")

    def stop(self) -> None:
        for monitor, handler_id in self._monitors:
            monitor.disconnect(handler_id)
            monitor.cancel()
        self._monitors = []

    def _on_changed(self, monitor, file, other_file, event_type) -> None:
        paths = {f.get_path() for f in (file, other_file) if f is not None}
        files = self.config.files
        if event_type in RELOAD_EVENTS and any(p and p.rstrip("~") in files for p in paths):
            try:
                self.config.update_config()
            except Exception as e:
                logging.error(f"Error reloading config file: {e}")

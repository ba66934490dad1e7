from typing import Dict, List, Optional, Tuple
import logging

import psutil

from auto_power_profile.modules.signals import Signal, Subscription


class ProcessWindow:
    """A running application process, standing in for its windows."""

    def __init__(self, pid: int, name: Optional[str]) -> None:
        self.pid: int = pid
        self.name: Optional[str] = name
        self.closed: Signal = Signal(f"process {pid} closed")

    def on_closed(self, callback) -> Subscription:
        return self.closed.connect(callback)

    def __repr__(self) -> str:
        return f"ProcessWindow(pid={self.pid}, name={self.name!r})"


class ProcessWindowEvents:
    """
    Window events derived from the process table.

    A Python daemon has no access to the compositor's window list, so
    applications are followed through their processes instead: the process
    table is polled on the GLib main loop and every process that appears or
    disappears is reported as a created or closed window. The owning
    application id of a window is the process name.
    """

    # Interval in seconds between two scans of the process table
    POLL_INTERVAL = 2

    def __init__(self, interval: int = POLL_INTERVAL) -> None:
        self.interval: int = interval
        self.window_created: Signal = Signal("window-created")
        self._windows: Dict[Tuple[int, float], ProcessWindow] = {}
        self._source_id: Optional[int] = None

    def start(self) -> None:
        from gi.repository import GLib

        self.poll()
        if self._source_id is None:
            self._source_id = GLib.timeout_add_seconds(
                GLib.PRIORITY_DEFAULT_IDLE, self.interval, self._on_timeout
            )

    def stop(self) -> None:
        if self._source_id is not None:
            from gi.repository import GLib

            GLib.source_remove(self._source_id)
            self._source_id = None
        self.window_created.clear()
        self._windows.clear()

    def _on_timeout(self) -> bool:
        self.poll()
        # GLib.SOURCE_CONTINUE
        return True

    def poll(self) -> None:
        """Compare the process table with the last scan and emit the differences."""
        seen: Dict[Tuple[int, float], ProcessWindow] = {}
        try:
            for proc in psutil.process_iter(["pid", "name", "create_time"]):
                info = proc.info
                key = (info["pid"], info.get("create_time") or 0.0)
                seen[key] = self._windows.get(key) or ProcessWindow(info["pid"], info.get("name"))
        except psutil.Error as e:
            logging.error(f"Error reading process table: {e}")
            return

        closed = [win for key, win in self._windows.items() if key not in seen]
        created = [win for key, win in seen.items() if key not in self._windows]
        self._windows = seen

        for win in closed:
            win.closed.emit(win)
        for win in created:
            self.window_created.emit(win)

    def on_window_created(self, callback) -> Subscription:
        return self.window_created.connect(callback)

    def resolve_owning_app_id(self, win: ProcessWindow) -> Optional[str]:
        return win.name or None

    def list_windows(self) -> List[ProcessWindow]:
        return list(self._windows.values())

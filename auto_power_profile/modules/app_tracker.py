from typing import Callable, Dict, FrozenSet, Iterable, Optional
import logging

from auto_power_profile.modules.signals import Subscription


class PerformanceAppTracker:
    """
    Tracks windows of configured performance applications.

    ``window_events`` is any object providing ``on_window_created(cb)``,
    ``resolve_owning_app_id(window)`` and ``list_windows()``; windows provide
    ``on_closed(cb)``. Every registration returns a
    :class:`~auto_power_profile.modules.signals.Subscription`.

    The active state callback is edge triggered: it only fires when
    :attr:`has_active_apps` flips, never for windows coming and going while
    the state stays the same.
    """

    def __init__(self) -> None:
        self._window_events = None
        self._tracked_windows: Dict[object, Subscription] = {}
        self._performance_app_ids: FrozenSet[str] = frozenset()
        self._on_active_state_change: Optional[Callable[[bool], None]] = None
        self._win_created_watcher: Optional[Subscription] = None

    def initialize(self, window_events, on_active_state_change: Callable[[bool], None]) -> None:
        """
        Start watching for new windows.

        :param window_events: Source of window creation events
        :param on_active_state_change: Called with True/False when the active state flips
        """
        self._window_events = window_events
        self._on_active_state_change = on_active_state_change
        self._win_created_watcher = window_events.on_window_created(self._on_window_event)

    @property
    def performance_apps(self) -> FrozenSet[str]:
        return self._performance_app_ids

    @property
    def has_active_apps(self) -> bool:
        return len(self._tracked_windows) > 0

    def set_performance_apps(self, app_ids: Iterable[str]) -> None:
        """
        Update the set of application ids to track and re-scan all open windows.

        :param app_ids: Application ids of performance apps
        """
        self._performance_app_ids = frozenset(app_ids or ())

        if self._window_events is None:
            return
        if self._performance_app_ids or self._tracked_windows:
            open_windows = list(self._window_events.list_windows())
            for win in open_windows:
                self.on_window_created(win)
            # windows that vanished without a close event
            for win in [w for w in self._tracked_windows if w not in open_windows]:
                self._on_window_closed(win)

    def _on_window_event(self, win) -> None:
        if self._performance_app_ids or self._tracked_windows:
            self.on_window_created(win)

    def on_window_created(self, win) -> None:
        """
        Handle a window creation or update event.

        :param win: The window to check
        """
        if self._window_events is None:
            return

        app_id = self._window_events.resolve_owning_app_id(win)
        is_perf_app = app_id is not None and app_id in self._performance_app_ids

        was_active = self.has_active_apps

        if is_perf_app and win not in self._tracked_windows:
            self._tracked_windows[win] = win.on_closed(self._on_window_closed)
            logging.debug(f"tracking performance app window of {app_id}")

            if not was_active:
                self._notify(True)
        elif not is_perf_app and win in self._tracked_windows:
            # app was removed from the performance apps list
            self._tracked_windows.pop(win).disconnect()

            if was_active and not self.has_active_apps:
                self._notify(False)

    def _on_window_closed(self, win) -> None:
        was_active = self.has_active_apps

        subscription = self._tracked_windows.pop(win, None)
        if subscription is None:
            return
        subscription.disconnect()

        if was_active and not self.has_active_apps:
            self._notify(False)

    def _notify(self, active: bool) -> None:
        logging.info(f"performance apps {'started' if active else 'stopped'}")
        if self._on_active_state_change is not None:
            self._on_active_state_change(active)

    def destroy(self) -> None:
        """Disconnect all signals and forget tracked windows."""
        if self._win_created_watcher is not None:
            self._win_created_watcher.disconnect()
            self._win_created_watcher = None

        for subscription in self._tracked_windows.values():
            subscription.disconnect()
        self._tracked_windows.clear()
        self._window_events = None
        self._on_active_state_change = None

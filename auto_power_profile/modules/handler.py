from configparser import Error as ConfigParserError
from typing import Any, Callable, Dict, List, Optional, Set
import logging

from auto_power_profile.config.config import Config, Settings
from auto_power_profile.globals import DEGRADED_LAP_DETECTED, DRIVERS_HELP_URI, SAFE_PROFILE
from auto_power_profile.modules.app_tracker import PerformanceAppTracker
from auto_power_profile.modules.policy import PowerCondition, evaluate
from auto_power_profile.modules.signals import Subscription
from auto_power_profile.modules.timer import CustomTimer
from auto_power_profile.modules.transition import ProfileTransition
from auto_power_profile.types import DebounceState


class AutoProfileHandler:
    """
    Wires power source, profile controller, configuration and performance apps
    to the profile decision.

    Every change goes through the same path: the policy computes the profile
    for the current conditions, the transition engine decides whether it may
    be applied, and only then the controller is asked to switch. Profile
    changes observed on the controller are fed back into the transition
    engine, which reports changes made by the user so they can be remembered
    as the new AC or battery default.

    Until both the power monitor and the profile controller are attached all
    decisions are skipped.
    """

    def __init__(
        self,
        config: Config,
        notifier=None,
        timer_factory: Callable[[int, Callable[[], None]], Any] = CustomTimer,
    ) -> None:
        self.config: Config = config
        self.settings: Settings = config.settings
        self.notifier = notifier
        self.transition = ProfileTransition(on_user_change=self.on_user_profile_change)
        self.app_tracker = PerformanceAppTracker()

        self.lap_timer = None
        self.debounce_state: DebounceState = DebounceState.IDLE
        self._timer_factory = timer_factory

        self._power_monitor = None
        self._profile_controller = None
        self._subscriptions: List[Subscription] = []
        self._notified: Set[str] = set()
        self._stopping: bool = False

    # ==================== lifecycle ====================

    def start(self, window_events=None) -> None:
        """
        Subscribe to configuration changes and start tracking performance apps.

        :param window_events: Source of window events, None disables performance app tracking
        """
        self._stopping = False
        self._subscriptions.append(self.config.on_change(self.on_settings_change))
        if window_events is not None:
            self.app_tracker.initialize(window_events, self.on_apps_active_change)
        self.app_tracker.set_performance_apps(self.settings.performance_apps)

    def attach_power_monitor(self, monitor) -> None:
        self._power_monitor = monitor
        self._subscriptions.append(monitor.on_change(self.on_power_change))
        logging.info("power source monitor connected")
        self.on_settings_change(self.config.settings)

    def attach_profile_controller(self, controller) -> None:
        self._profile_controller = controller
        self._subscriptions.append(controller.on_change(self.on_profile_change))
        logging.info("profile controller connected")

        status = controller.validate_drivers()
        if not status.active:
            logging.warning("power-profiles-daemon reports no active profile")
        elif not status.has_drivers:
            self._notify_once(
                "No system-specific platform driver is available", DRIVERS_HELP_URI
            )
        self.check_profile()

    def service_unavailable(self, error) -> None:
        """
        Report a service that failed to connect.

        The message reaches the user once per session, the handler keeps
        running without the service.
        """
        logging.error(str(error))
        self._notify_once(getattr(error, "message", str(error)))

    def shutdown(self) -> None:
        """
        Cancel pending work, put the system back into the safe profile and
        release every subscription.
        """
        self._stopping = True
        self._cancel_lap_timer()

        if self._profile_controller is not None:
            self.switch_profile(SAFE_PROFILE)

        for subscription in self._subscriptions:
            subscription.disconnect()
        self._subscriptions = []

        self.app_tracker.destroy()
        self.transition.reset()
        self._power_monitor = None
        self._profile_controller = None

    @property
    def ready(self) -> bool:
        return self._power_monitor is not None and self._profile_controller is not None

    # ==================== decision ====================

    def power_conditions(self) -> Optional[PowerCondition]:
        if self._power_monitor is None:
            return None
        state = self._power_monitor.get_state()
        return evaluate(state, self.app_tracker.has_active_apps, self.settings)

    def check_profile(self) -> None:
        """
        Compute the profile for the current conditions and apply it if allowed.

        Errors are logged here, a failed check never reaches the caller.
        """
        if not self.ready or self._stopping:
            logging.debug("profile check skipped, services not ready")
            return

        try:
            self._check_profile()
        except Exception as e:
            logging.error(f"Error while checking power profile: {e}")

    def _check_profile(self) -> None:
        conditions = self.power_conditions()
        if self.transition.effective_profile is None:
            active = self._profile_controller.active_profile
            if active:
                self._report(active, conditions)

        allowed = self.transition.request(
            conditions.configured_profile,
            conditions.on_battery,
            conditions.low_battery,
            conditions.perf_apps_active,
        )
        logging.debug(f"conditions: {conditions}, switch allowed: {allowed}")

        if allowed:
            self.switch_profile(conditions.configured_profile)

    def switch_profile(self, profile: str) -> bool:
        if self._profile_controller is None:
            logging.debug(f"Cannot switch to profile '{profile}' - profile controller not connected yet")
            return False
        if profile == self._profile_controller.active_profile:
            return True

        logging.info(f"switching to {profile} profile")
        return self._profile_controller.set_active_profile(profile)

    def _report(self, profile: Optional[str], conditions: PowerCondition) -> None:
        self.transition.report(
            profile,
            conditions.on_battery,
            conditions.low_battery,
            conditions.perf_apps_active,
            conditions.on_ac,
        )

    # ==================== event handlers ====================

    def on_power_change(self, *args) -> None:
        logging.debug("power source changed")
        self.check_profile()

    def on_apps_active_change(self, active: bool) -> None:
        logging.debug(f"performance apps active: {active}")
        self.check_profile()

    def on_settings_change(self, settings: Settings) -> None:
        self.settings = settings
        if not settings.lap_mode:
            self._cancel_lap_timer()

        # force a fresh decision for the new settings
        self.transition.reset()
        self.app_tracker.set_performance_apps(settings.performance_apps)
        self.check_profile()

    def on_profile_change(self, changed: Dict[str, Any]) -> None:
        """
        Handle a properties change of the profile controller.

        Notifications flagged with a degraded performance reason are not taken
        as profile confirmations. "lap-detected" on AC restarts the debounce
        timer, every other reason is only logged.

        :param changed: Changed properties, e.g. ``{"ActiveProfile": "balanced"}``
        """
        if not self.ready or self._stopping:
            logging.debug("profile change ignored, services not ready")
            return

        conditions = self.power_conditions()
        degraded = changed.get("PerformanceDegraded")
        active = changed.get("ActiveProfile") or self._profile_controller.active_profile

        if "ActiveProfile" in changed and not degraded:
            self._cancel_lap_timer()
            self._report(active, conditions)

        if not degraded:
            return

        if degraded == DEGRADED_LAP_DETECTED and conditions.on_ac and self.settings.lap_mode:
            logging.info(f"lap detected, rechecking profile in {self.settings.lap_mode_delay}s")
            self._start_lap_timer()
        else:
            logging.info(f"ActiveProfile: {active}, PerformanceDegraded: {degraded}")

    def on_user_profile_change(self, profile: str, conditions: Dict[str, bool]) -> None:
        """
        Remember a profile picked by the user as the new default for the current power source.

        :param profile: Profile the user switched to
        :param conditions: ``on_battery``, ``on_ac`` and ``low_battery`` flags at the time of the change
        """
        if not self.settings.remember_user_profile:
            return
        if conditions.get("low_battery") or self.app_tracker.has_active_apps:
            return

        if conditions.get("on_battery"):
            key, current = "battery-profile", self.settings.battery_profile
        else:
            key, current = "ac-profile", self.settings.ac_profile
        if profile == current:
            return

        logging.info(f"remembering {profile} as {key}")
        try:
            self.config.set_option(key, profile)
        except (OSError, ConfigParserError) as e:
            logging.error(f"Unable to save {key}: {e}")

    # ==================== lap mode debounce ====================

    def _start_lap_timer(self) -> None:
        self._cancel_lap_timer()
        self.lap_timer = self._timer_factory(self.settings.lap_mode_delay, self._on_lap_timer)
        self.lap_timer.start()
        self.debounce_state = DebounceState.DEGRADED_PENDING

    def _cancel_lap_timer(self) -> None:
        if self.lap_timer is not None:
            self.lap_timer.cancel()
            self.lap_timer = None
        self.debounce_state = DebounceState.IDLE

    def _on_lap_timer(self) -> None:
        self.lap_timer = None
        self.debounce_state = DebounceState.IDLE
        logging.debug("lap mode debounce expired")
        self.transition.reset()
        self.check_profile()

    # ==================== notifications ====================

    def _notify_once(self, body: str, uri: Optional[str] = None) -> None:
        if body in self._notified:
            return
        self._notified.add(body)

        if self.notifier is None or not self.settings.notifications_enabled:
            logging.warning(body)
            return
        try:
            self.notifier.notify(body, uri)
        except Exception as e:
            logging.error(f"Unable to show notification: {e}")

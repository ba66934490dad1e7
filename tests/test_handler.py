import configparser
import os

import pytest

from auto_power_profile.exceptions import ServiceUnavailableError
from auto_power_profile.globals import DRIVERS_HELP_URI
from auto_power_profile.modules.handler import AutoProfileHandler
from auto_power_profile.types import DebounceState

from tests.conftest import (
    FakeNotifier,
    FakePowerMonitor,
    FakeProfileController,
    FakeSystemSettings,
    FakeTimer,
    FakeWindowEvents,
)


@pytest.fixture
def setup(make_config):
    """Return a factory for a fully attached handler."""

    def factory(*lines, on_battery=False, percentage=80.0, active="balanced", attach=True):
        config = make_config(*lines)
        notifier = FakeNotifier()
        windows = FakeWindowEvents()
        monitor = FakePowerMonitor(on_battery=on_battery, percentage=percentage)
        controller = FakeProfileController(active_profile=active)
        handler = AutoProfileHandler(config, notifier=notifier, timer_factory=FakeTimer)
        handler.start(windows)
        if attach:
            handler.attach_profile_controller(controller)
            handler.attach_power_monitor(monitor)
        return handler, config, monitor, controller, windows, notifier

    return factory


def read_setting(config, key):
    conf = configparser.ConfigParser()
    conf.read(config.path, encoding="utf-8")
    return conf.get("settings", key, fallback=None)


def test_applies_ac_profile_on_start(setup):
    handler, _, _, controller, _, _ = setup()
    assert controller.active_profile == "performance"
    assert controller.switches == ["performance"]
    assert handler.transition.committed_profile == "performance"


def test_no_switch_when_profile_already_active(setup):
    _, _, monitor, controller, _, _ = setup(on_battery=True)
    assert controller.switches == []

    monitor.update(percentage=70.0)
    assert controller.switches == []


def test_decisions_wait_for_both_services(setup):
    handler, _, monitor, controller, _, _ = setup(attach=False)

    handler.attach_profile_controller(controller)
    assert not handler.ready
    handler.check_profile()
    assert controller.switches == []

    handler.attach_power_monitor(monitor)
    assert handler.ready
    assert controller.switches == ["performance"]


def test_power_source_changes(setup):
    _, _, monitor, controller, _, _ = setup("low-battery-threshold = 20", on_battery=True, percentage=29.0)
    assert controller.active_profile == "balanced"

    monitor.update(percentage=15.0)
    assert controller.active_profile == "power-saver"

    monitor.update(on_battery=False)
    assert controller.active_profile == "performance"
    assert controller.switches == ["power-saver", "performance"]


def test_performance_app_open_and_close(setup):
    _, _, _, controller, windows, _ = setup(
        "performance-apps = steam", "performance-apps-battery-profile = performance", on_battery=True
    )
    assert controller.active_profile == "balanced"

    win = windows.open("steam")
    assert controller.active_profile == "performance"

    windows.close(win)
    assert controller.active_profile == "balanced"


def test_user_choice_on_ac_is_kept_and_remembered(setup):
    handler, config, monitor, controller, _, _ = setup()
    assert controller.active_profile == "performance"

    controller.emit_change(ActiveProfile="balanced")

    assert controller.active_profile == "balanced"
    assert read_setting(config, "ac-profile") == "balanced"
    assert handler.settings.ac_profile == "balanced"

    monitor.update(percentage=75.0)
    assert controller.active_profile == "balanced"
    assert controller.switches == ["performance"]


def test_user_choice_kept_without_remembering(setup):
    handler, config, monitor, controller, _, _ = setup("remember-user-profile = false")

    controller.emit_change(ActiveProfile="balanced")
    monitor.update(percentage=75.0)

    assert controller.active_profile == "balanced"
    assert read_setting(config, "ac-profile") is None
    assert handler.settings.ac_profile == "performance"

    # a real change of conditions applies the configured profile again
    monitor.update(on_battery=True)
    monitor.update(on_battery=False)
    assert controller.active_profile == "performance"


def test_user_choice_on_battery_is_remembered_as_battery_profile(setup):
    _, config, _, controller, _, _ = setup(on_battery=True)

    controller.emit_change(ActiveProfile="power-saver")

    assert read_setting(config, "battery-profile") == "power-saver"
    assert read_setting(config, "ac-profile") is None


def test_user_choice_not_remembered_while_performance_app_runs(setup):
    _, config, _, controller, windows, _ = setup("performance-apps = steam", on_battery=True)
    windows.open("steam")
    assert controller.active_profile == "performance"

    controller.emit_change(ActiveProfile="balanced")

    assert read_setting(config, "battery-profile") is None


def test_lap_detected_restarts_single_timer(setup):
    handler, _, _, controller, _, _ = setup()

    controller.emit_change(ActiveProfile="balanced", PerformanceDegraded="lap-detected")
    first = handler.lap_timer
    assert first.running
    assert first.timeout == 5
    assert handler.debounce_state == DebounceState.DEGRADED_PENDING
    # degraded notifications do not count as user changes
    assert controller.active_profile == "balanced"

    controller.emit_change(PerformanceDegraded="lap-detected")
    second = handler.lap_timer
    assert not first.running
    assert second.running
    assert len([t for t in FakeTimer.instances if t.running]) == 1

    second.fire()

    assert handler.lap_timer is None
    assert handler.debounce_state == DebounceState.IDLE
    assert controller.active_profile == "performance"


def test_lap_delay_from_config(setup):
    handler, _, _, controller, _, _ = setup("lap-mode-delay = 12")
    controller.emit_change(PerformanceDegraded="lap-detected")
    assert handler.lap_timer.timeout == 12


def test_lap_detected_ignored_on_battery(setup):
    handler, _, _, controller, _, _ = setup(on_battery=True)
    controller.emit_change(PerformanceDegraded="lap-detected")
    assert handler.lap_timer is None
    assert FakeTimer.instances == []


def test_lap_detected_ignored_when_lap_mode_disabled(setup):
    handler, _, _, controller, _, _ = setup("lap-mode = false")
    controller.emit_change(PerformanceDegraded="lap-detected")
    assert handler.lap_timer is None


def test_other_degraded_reasons_are_only_logged(setup, caplog):
    caplog.set_level("INFO")
    handler, _, _, controller, _, _ = setup()
    controller.emit_change(ActiveProfile="balanced", PerformanceDegraded="high-operating-temperature")

    assert handler.lap_timer is None
    assert "high-operating-temperature" in caplog.text
    assert controller.switches == ["performance"]


def test_profile_confirmation_cancels_lap_timer(setup):
    handler, _, _, controller, _, _ = setup()
    controller.emit_change(PerformanceDegraded="lap-detected")
    timer = handler.lap_timer

    controller.emit_change(ActiveProfile="performance")

    assert not timer.running
    assert handler.lap_timer is None
    assert handler.debounce_state == DebounceState.IDLE


def test_service_unavailable_is_notified_once(setup):
    handler, _, _, _, _, notifier = setup(attach=False)
    error = ServiceUnavailableError("power-profiles-daemon", "name has no owner")

    handler.service_unavailable(error)
    handler.service_unavailable(error)

    assert notifier.messages == [("Error connecting power-profiles-daemon DBus. Check your installation", None)]


def test_missing_drivers_are_notified(make_config):
    notifier = FakeNotifier()
    handler = AutoProfileHandler(make_config(), notifier=notifier, timer_factory=FakeTimer)
    handler.start()
    handler.attach_profile_controller(FakeProfileController(has_drivers=False))

    assert notifier.messages == [("No system-specific platform driver is available", DRIVERS_HELP_URI)]


def test_notifications_can_be_disabled(setup):
    handler, _, _, _, _, notifier = setup("notifications-enabled = false", attach=False)
    handler.service_unavailable(ServiceUnavailableError("UPower", "timeout"))
    assert notifier.messages == []


def test_invalid_profile_is_not_applied(setup):
    _, _, monitor, controller, _, _ = setup("ac-profile = turbo")
    assert controller.active_profile == "balanced"
    assert controller.switches == []

    monitor.update(percentage=60.0)
    assert controller.active_profile == "balanced"


def test_settings_change_applies_new_profile(setup):
    _, config, _, controller, _, _ = setup()
    assert controller.active_profile == "performance"

    config.set_option("ac-profile", "power-saver")

    assert controller.active_profile == "power-saver"


def test_shutdown_restores_balanced_and_releases(setup):
    handler, config, monitor, controller, windows, _ = setup("performance-apps = steam")
    controller.emit_change(PerformanceDegraded="lap-detected")
    timer = handler.lap_timer

    handler.shutdown()

    assert controller.active_profile == "balanced"
    assert not timer.running
    assert len(monitor.changed) == 0
    assert len(controller.changed) == 0
    assert len(config.changed) == 0
    assert len(windows.window_created) == 0
    assert not handler.ready
    # the switch to balanced is not taken as a user choice
    assert read_setting(config, "ac-profile") is None

    monitor.update(on_battery=True)
    assert controller.switches == ["performance", "balanced"]


def test_non_lap_degraded_reason_keeps_pending_timer(setup):
    handler, _, _, controller, _, _ = setup()
    controller.emit_change(PerformanceDegraded="lap-detected")
    timer = handler.lap_timer

    controller.emit_change(ActiveProfile="balanced", PerformanceDegraded="high-operating-temperature")

    assert timer.running
    assert handler.lap_timer is timer
    assert handler.debounce_state == DebounceState.DEGRADED_PENDING
    # the flagged profile is not taken as the effective one
    assert handler.transition.effective_profile == "performance"


class FailingPowerMonitor(FakePowerMonitor):
    def get_state(self):
        raise RuntimeError("org.freedesktop.DBus.Error.ServiceUnknown")


def test_errors_while_attaching_do_not_escape(setup, caplog):
    handler, _, _, controller, _, _ = setup(attach=False)
    handler.attach_profile_controller(controller)

    handler.attach_power_monitor(FailingPowerMonitor())

    assert handler.ready
    assert controller.switches == []
    assert "ServiceUnknown" in caplog.text


def test_unsaved_user_profile_is_logged(setup, config_path, caplog):
    handler, _, _, _, _, _ = setup()
    os.makedirs(os.path.dirname(config_path), exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        f.write("ac-profile = balanced\n")

    handler.on_user_profile_change("balanced", {"on_battery": False, "on_ac": True, "low_battery": False})

    assert "Unable to save ac-profile" in caplog.text


def test_system_low_battery_setting_is_followed(setup):
    _, config, _, controller, _, _ = setup(on_battery=True, percentage=10.0)
    assert controller.active_profile == "power-saver"

    system_settings = FakeSystemSettings(power_saver_on_low_battery=False)
    config.set_system_settings(system_settings)
    assert controller.active_profile == "balanced"

    system_settings.toggle(True)
    assert controller.active_profile == "power-saver"

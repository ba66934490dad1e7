from collections import namedtuple
import os

import pytest

from auto_power_profile.config.config import Config
from auto_power_profile.globals import DEFAULT_PROFILES, PROFILE_BALANCED
from auto_power_profile.modules.policy import PowerState
from auto_power_profile.modules.signals import Signal

FakeDriverStatus = namedtuple("FakeDriverStatus", ["active", "has_drivers"])


class FakePowerMonitor:
    def __init__(self, on_battery=False, percentage=80.0, has_battery=True):
        self.state = PowerState(has_battery=has_battery, on_battery=on_battery, percentage=percentage)
        self.changed = Signal("fake-power-source")

    def get_state(self):
        return self.state

    def on_change(self, callback):
        return self.changed.connect(callback)

    def update(self, **values):
        for key, value in values.items():
            setattr(self.state, key, value)
        self.changed.emit()


class FakeProfileController:
    def __init__(self, active_profile=PROFILE_BALANCED, profiles=DEFAULT_PROFILES, has_drivers=True):
        self.active_profile = active_profile
        self.profiles = list(profiles)
        self.has_drivers = has_drivers
        self.changed = Signal("fake-power-profiles")
        self.switches = []

    def on_change(self, callback):
        return self.changed.connect(callback)

    def list_profiles(self):
        return list(self.profiles)

    def set_active_profile(self, profile):
        if profile not in self.profiles:
            return False
        self.switches.append(profile)
        self.active_profile = profile
        self.changed.emit({"ActiveProfile": profile})
        return True

    def validate_drivers(self):
        return FakeDriverStatus(active=bool(self.active_profile), has_drivers=self.has_drivers)

    def emit_change(self, **properties):
        """Simulate a change made outside the daemon, e.g. by the user or power-profiles-daemon itself."""
        if "ActiveProfile" in properties:
            self.active_profile = properties["ActiveProfile"]
        self.changed.emit(properties)


class FakeTimer:
    instances = []

    def __init__(self, timeout, callback):
        self.timeout = timeout
        self.callback = callback
        self.running = False
        FakeTimer.instances.append(self)

    def start(self):
        self.running = True

    def cancel(self):
        self.running = False

    def is_running(self):
        return self.running

    def fire(self):
        assert self.running, "timer fired while not running"
        self.running = False
        self.callback()


class FakeWindow:
    def __init__(self, app_id):
        self.app_id = app_id
        self.closed = Signal(f"{app_id} closed")

    def on_closed(self, callback):
        return self.closed.connect(callback)


class FakeWindowEvents:
    def __init__(self, windows=()):
        self.windows = list(windows)
        self.window_created = Signal("fake-window-created")

    def on_window_created(self, callback):
        return self.window_created.connect(callback)

    def resolve_owning_app_id(self, win):
        return win.app_id

    def list_windows(self):
        return list(self.windows)

    def open(self, app_id):
        win = FakeWindow(app_id)
        self.windows.append(win)
        self.window_created.emit(win)
        return win

    def close(self, win):
        self.windows.remove(win)
        win.closed.emit(win)


class FakeSystemSettings:
    def __init__(self, power_saver_on_low_battery=True):
        self.power_saver_on_low_battery = power_saver_on_low_battery
        self.changed = Signal("fake-system-settings")

    def on_change(self, callback):
        return self.changed.connect(callback)

    def toggle(self, value):
        self.power_saver_on_low_battery = value
        self.changed.emit()


class FakeNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, body, uri=None):
        self.messages.append((body, uri))


@pytest.fixture(autouse=True)
def reset_timers():
    FakeTimer.instances = []
    yield
    FakeTimer.instances = []


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "auto-power-profile" / "auto-power-profile.conf")


@pytest.fixture
def make_config(config_path, tmp_path):
    """Return a factory writing the given ``[settings]`` lines and loading them."""

    def factory(*lines):
        if lines:
            os.makedirs(os.path.dirname(config_path), exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write("[settings]\n" + "\n".join(lines) + "\n")
        config = Config(
            upower_config_file=str(tmp_path / "missing-UPower.conf"),
            system_config_file=str(tmp_path / "missing-system.conf"),
        )
        config.set_path(config_path)
        return config

    return factory

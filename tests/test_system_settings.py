from types import SimpleNamespace

import pytest

pytest.importorskip("gi")

from auto_power_profile.config import system_settings as system_settings_module  # noqa: E402
from auto_power_profile.config.system_settings import GnomePowerSettings  # noqa: E402


class FakeSchema:
    def __init__(self, keys):
        self.keys = keys

    def has_key(self, key):
        return key in self.keys


class FakeGSettings:
    def __init__(self, values):
        self.values = values
        self.handlers = {}

    def connect(self, signal, callback):
        handler_id = len(self.handlers) + 1
        self.handlers[handler_id] = (signal, callback)
        return handler_id

    def disconnect(self, handler_id):
        del self.handlers[handler_id]

    def get_boolean(self, key):
        return self.values[key]

    def set_boolean(self, key, value):
        self.values[key] = value
        for signal, callback in list(self.handlers.values()):
            if signal == f"changed::{key}":
                callback(self, key)


def fake_gio(schemas, settings):
    source = SimpleNamespace(lookup=lambda schema_id, recursive: schemas.get(schema_id))
    return SimpleNamespace(
        SettingsSchemaSource=SimpleNamespace(get_default=lambda: source),
        Settings=SimpleNamespace(new=lambda schema_id: settings),
    )


def test_load_without_schema(monkeypatch):
    monkeypatch.setattr(system_settings_module, "Gio", fake_gio({}, None))
    assert GnomePowerSettings.load() is None


def test_load_without_key(monkeypatch):
    schemas = {"org.gnome.settings-daemon.plugins.power": FakeSchema([])}
    monkeypatch.setattr(system_settings_module, "Gio", fake_gio(schemas, None))
    assert GnomePowerSettings.load() is None


def test_reads_and_follows_the_switch(monkeypatch):
    key = "power-saver-profile-on-low-battery"
    gsettings = FakeGSettings({key: True})
    schemas = {"org.gnome.settings-daemon.plugins.power": FakeSchema([key])}
    monkeypatch.setattr(system_settings_module, "Gio", fake_gio(schemas, gsettings))

    power_settings = GnomePowerSettings.load()
    changes = []
    power_settings.on_change(lambda: changes.append(power_settings.power_saver_on_low_battery))

    assert power_settings.power_saver_on_low_battery is True
    gsettings.set_boolean(key, False)
    assert changes == [False]

    power_settings.destroy()
    assert gsettings.handlers == {}
    gsettings.set_boolean(key, True)
    assert changes == [False]

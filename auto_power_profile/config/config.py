from configparser import ConfigParser, Error as ConfigParserError
from dataclasses import dataclass, fields, replace
import logging
import os
import sys
from typing import Callable, Dict, List, Optional, Tuple

from auto_power_profile.globals import (
    APP_NAME,
    LAP_MODE_DELAY,
    LOW_BATTERY_THRESHOLD,
    PROFILE_BALANCED,
    PROFILE_PERFORMANCE,
    SYSTEM_CONFIG_FILE,
    UPOWER_CONFIG_FILE,
    USER_CONFIG_DIR,
)
from auto_power_profile.modules.signals import Signal, Subscription
from auto_power_profile.types import LowBatteryMode

SECTION = "settings"
UPOWER_SECTION = "UPower"


def user_config_file() -> str:
    return os.path.join(USER_CONFIG_DIR, APP_NAME, f"{APP_NAME}.conf")


def find_config_file(args_config_file) -> str:
    """
    Find the config file settings are written to.

    1. Command line argument, used on its own
    2. User config file, layered over the system config file

    The user file does not have to exist, it gets created the first time a
    setting is written. The system config file is only ever read.

    :param args_config_file: Path to the config file provided as a command line argument
    :return: The path to the config file to use
    """
    if args_config_file is not None:                                # (1) Command line argument was specified
        if os.path.isfile(args_config_file): return args_config_file
        else:
            print(f"Config file specified with '--config {args_config_file}' not found.")
            sys.exit(1)
    return user_config_file()                                       # (2) User config file


def read_percentage_low(path: str = UPOWER_CONFIG_FILE) -> Optional[int]:
    """
    Read ``PercentageLow`` from the UPower daemon configuration.

    :param path: Location of UPower.conf
    :return: The configured percentage, or None when missing or invalid
    """
    conf = ConfigParser(interpolation=None)
    try:
        if not conf.read(path, encoding="utf-8"):
            logging.debug(f"No UPower config at {path}")
            return None
        value = conf.getfloat(UPOWER_SECTION, "PercentageLow", fallback=None)
    except (ConfigParserError, ValueError) as e:
        logging.debug(f"Unable to read PercentageLow from {path}: {e}")
        return None

    if value is None or not 0 <= value <= 100:
        logging.debug(f"No valid PercentageLow in {path}")
        return None
    logging.info(f"Read UPower PercentageLow from config: {int(value)}%")
    return int(value)


@dataclass(frozen=True)
class Settings:
    """Typed snapshot of the configuration, rebuilt on every change."""

    ac_profile: str = PROFILE_PERFORMANCE
    battery_profile: str = PROFILE_BALANCED
    low_battery_mode: LowBatteryMode = LowBatteryMode.THRESHOLD
    low_battery_threshold: int = LOW_BATTERY_THRESHOLD
    power_saver_on_low_battery: bool = True
    performance_apps: Tuple[str, ...] = ()
    performance_apps_ac_profile: str = PROFILE_PERFORMANCE
    performance_apps_battery_profile: str = PROFILE_PERFORMANCE
    notifications_enabled: bool = True
    remember_user_profile: bool = True
    lap_mode: bool = True
    lap_mode_delay: int = LAP_MODE_DELAY


# INI key -> Settings field
KEYS: Dict[str, str] = {f.name.replace("_", "-"): f.name for f in fields(Settings)}


def parse_app_ids(value: str) -> Tuple[str, ...]:
    """Split a comma or newline separated list of application ids."""
    apps = []
    for item in value.replace("\n", ",").split(","):
        item = item.strip()
        if item.endswith(".desktop"):
            item = item[: -len(".desktop")]
        if item and item not in apps:
            apps.append(item)
    return tuple(apps)


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, LowBatteryMode):
        return value.value
    if isinstance(value, (tuple, list, set, frozenset)):
        return ", ".join(value)
    return str(value)


class Config:
    """
    INI backed configuration store.

    Settings are read from the system config file first and then from
    :attr:`path`, so values in the user file win. Writes only ever go to
    :attr:`path`. When GNOME's power settings are available, their
    ``power-saver-profile-on-low-battery`` key replaces the INI one.

    Holds the raw ConfigParser, a typed :class:`Settings` snapshot and a
    single aggregated change signal. The signal only fires when the snapshot
    actually changed, so a write that round-trips through the file monitor is
    reported once.
    """

    def __init__(
        self,
        path: str = "",
        upower_config_file: str = UPOWER_CONFIG_FILE,
        system_config_file: Optional[str] = SYSTEM_CONFIG_FILE,
    ) -> None:
        self.path: str = path
        self.upower_config_file: str = upower_config_file
        self.system_config_file: Optional[str] = system_config_file
        self.system_settings = None
        self._system_subscription: Optional[Subscription] = None
        self._config: ConfigParser = ConfigParser()
        self._settings: Settings = Settings()
        self.changed: Signal = Signal("config")

    def set_path(self, path: str) -> None:
        self.path = path
        self.update_config()

    @property
    def files(self) -> List[str]:
        """Config files in reading order, the last one wins."""
        files = [self.system_config_file] if self.system_config_file else []
        if self.path and self.path not in files:
            files.append(self.path)
        return files

    def has_config(self) -> bool:
        return any(os.path.isfile(f) for f in self.files)

    def set_system_settings(self, system_settings) -> None:
        """
        Take the low battery override from the desktop's power settings.

        :param system_settings: Object with a ``power_saver_on_low_battery`` flag and ``on_change(cb)``, None to fall back to the INI key
        """
        if self._system_subscription is not None:
            self._system_subscription.disconnect()
            self._system_subscription = None
        self.system_settings = system_settings
        if system_settings is not None:
            self._system_subscription = system_settings.on_change(self.update_config)
        self.update_config()

    @property
    def settings(self) -> Settings:
        return self._settings

    def on_change(self, callback: Callable[[Settings], None]) -> Subscription:
        return self.changed.connect(callback)

    def update_config(self, *args) -> None:
        # create new ConfigParser to prevent old data from remaining
        conf = ConfigParser()
        for path in self.files:
            try: conf.read(path, encoding="utf-8")
            except ConfigParserError as e: logging.error(f"The following error occured while parsing {path}: {e}")
        self._config = conf

        settings = self._build_settings(conf)
        if settings == self._settings:
            return
        self._settings = settings
        logging.debug(f"settings changed: {settings}")
        self.changed.emit(settings)

    def set_option(self, key: str, value) -> None:
        """
        Persist a single setting to :attr:`path` and reload.

        The file is rewritten by ConfigParser, comments in it are not kept.

        :param key: INI key, e.g. ``ac-profile``
        :param value: New value, converted to its INI representation
        :raises KeyError: If ``key`` is not a known setting
        :raises OSError: If the file can't be written
        :raises configparser.Error: If the existing file can't be parsed
        """
        if key not in KEYS:
            raise KeyError(f"Unknown setting: {key}")

        conf = ConfigParser()
        conf.read(self.path, encoding="utf-8")
        if not conf.has_section(SECTION):
            conf.add_section(SECTION)
        conf.set(SECTION, key, _format_value(value))

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            conf.write(f)
        logging.info(f"Saved {key} = {_format_value(value)} to {self.path}")

        self.update_config()

    def _build_settings(self, conf: ConfigParser) -> Settings:
        threshold = read_percentage_low(self.upower_config_file)
        defaults = Settings(
            low_battery_threshold=threshold if threshold is not None else LOW_BATTERY_THRESHOLD
        )

        values = {}
        if conf.has_section(SECTION):
            section = conf[SECTION]
            for key in section:
                if key not in KEYS:
                    logging.warning(f"Ignoring unknown setting '{key}'")
                    continue
                name = KEYS[key]
                default = getattr(defaults, name)
                try:
                    values[name] = self._convert(section, key, default)
                except ValueError:
                    logging.warning(
                        f"Invalid value for '{key}': {section[key]}, using default {_format_value(default)}"
                    )

        if self.system_settings is not None:
            values["power_saver_on_low_battery"] = bool(self.system_settings.power_saver_on_low_battery)
        return replace(defaults, **values)

    @staticmethod
    def _convert(section, key: str, default):
        if isinstance(default, bool):
            return section.getboolean(key)
        if isinstance(default, LowBatteryMode):
            return LowBatteryMode(section[key].strip())
        if isinstance(default, tuple):
            return parse_app_ids(section[key])
        if isinstance(default, int):
            value = section.getint(key)
            if key == "low-battery-threshold" and not 0 <= value <= 100:
                raise ValueError(value)
            if key == "lap-mode-delay" and value < 1:
                raise ValueError(value)
            return value
        value = section[key].strip()
        if not value:
            raise ValueError(value)
        return value

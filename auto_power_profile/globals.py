from os import getenv, path

APP_NAME = "auto-power-profile"
VERSION = "1.0.0"

# profile names as published by power-profiles-daemon
PROFILE_POWER_SAVER = "power-saver"
PROFILE_BALANCED = "balanced"
PROFILE_PERFORMANCE = "performance"
DEFAULT_PROFILES = (PROFILE_POWER_SAVER, PROFILE_BALANCED, PROFILE_PERFORMANCE) # from the lowest power to the highest

# profile forced on teardown
SAFE_PROFILE = PROFILE_BALANCED

DEGRADED_LAP_DETECTED = "lap-detected"
LAP_MODE_DELAY = 5 # seconds
LOW_BATTERY_THRESHOLD = 25 # percent, used when UPower.conf has no PercentageLow

DRIVERS_HELP_URI = "https://upower.pages.freedesktop.org/power-profiles-daemon/power-profiles-daemon-Platform-Profile-Drivers.html"

SYSTEM_CONFIG_FILE = "/etc/auto-power-profile.conf"
UPOWER_CONFIG_FILE = "/etc/UPower/UPower.conf"
USER_CONFIG_DIR = getenv("XDG_CONFIG_HOME", default=path.join(path.expanduser("~"), ".config"))
USER_STATE_DIR = getenv("XDG_STATE_HOME", default=path.join(path.expanduser("~"), ".local", "state"))
LOG_DIR = path.join(USER_STATE_DIR, APP_NAME)

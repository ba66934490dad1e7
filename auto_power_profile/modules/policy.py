from dataclasses import dataclass
from typing import Optional

from auto_power_profile.config.config import Settings
from auto_power_profile.globals import PROFILE_POWER_SAVER
from auto_power_profile.types import LowBatteryMode, WarningLevel


@dataclass
class PowerState:
    """Raw power source reading as reported by the power monitor."""

    has_battery: bool
    on_battery: bool
    percentage: Optional[float]
    warning_level: WarningLevel = WarningLevel.NONE


@dataclass
class PowerCondition:
    """
    Conditions a profile decision is made on.

    Recomputed on every signal and never cached.
    """

    has_battery: bool
    on_battery: bool
    low_battery: bool
    perf_apps_active: bool
    configured_profile: str
    low_battery_forced: bool = False

    @property
    def on_ac(self) -> bool:
        return not self.on_battery


def battery_below_threshold(state: PowerState, settings: Settings) -> bool:
    """
    Check the battery level against the low battery setting.

    Uses either the percentage threshold or the warning level reported by
    UPower, depending on ``low-battery-mode``. An unknown percentage never
    counts as low.

    :param state: Current power source reading
    :param settings: Configuration snapshot
    :return: True if the battery is running low, regardless of the power source
    """
    if settings.low_battery_mode == LowBatteryMode.WARNING_LEVEL:
        return state.warning_level >= WarningLevel.LOW
    if state.percentage is None:
        return False
    return state.percentage <= settings.low_battery_threshold


def evaluate(state: PowerState, apps_active: bool, settings: Settings) -> PowerCondition:
    """
    Map power state and configuration to the profile that should be active.

    The first matching rule wins:

    1. on AC -> ``ac-profile``
    2. on battery, battery low, power saver on low battery enabled -> "power-saver"
    3. on battery otherwise -> ``battery-profile``

    A running performance app then replaces the result with the matching
    performance app profile, unless rule 2 applied. Low battery protection
    always wins over performance apps.

    :param state: Current power source reading
    :param apps_active: True if any configured performance app has a window open
    :param settings: Configuration snapshot
    :return: The condition with its configured profile
    """
    on_battery = state.on_battery
    low_battery = (
        on_battery
        and settings.power_saver_on_low_battery
        and battery_below_threshold(state, settings)
    )

    if not on_battery:
        profile = settings.ac_profile
    elif low_battery:
        profile = PROFILE_POWER_SAVER
    else:
        # also reached when the battery is low but the power saver override is off
        profile = settings.battery_profile

    if apps_active and not low_battery:
        profile = (
            settings.performance_apps_battery_profile
            if on_battery
            else settings.performance_apps_ac_profile
        )

    return PowerCondition(
        has_battery=state.has_battery,
        on_battery=on_battery,
        low_battery=low_battery,
        perf_apps_active=apps_active,
        configured_profile=profile,
        low_battery_forced=low_battery,
    )

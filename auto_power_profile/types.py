from enum import Enum, IntEnum


class DeviceState(IntEnum):
    UNKNOWN = 0
    CHARGING = 1
    DISCHARGING = 2
    EMPTY = 3
    FULLY_CHARGED = 4
    PENDING_CHARGE = 5
    PENDING_DISCHARGE = 6


class DeviceType(IntEnum):
    UNKNOWN = 0
    LINE_POWER = 1
    BATTERY = 2


class WarningLevel(IntEnum):
    UNKNOWN = 0
    NONE = 1
    DISCHARGING = 2
    LOW = 3
    CRITICAL = 4
    ACTION = 5


class LowBatteryMode(Enum):
    THRESHOLD = "threshold"
    WARNING_LEVEL = "warning-level"


class DebounceState(Enum):
    IDLE = "idle"
    DEGRADED_PENDING = "degraded-pending"

from os import get_terminal_size
from typing import List, Optional

from auto_power_profile.config.config import Settings
from auto_power_profile.modules.policy import PowerCondition, PowerState

try: terminal_width = min(get_terminal_size(0)[0], 50)
except OSError: terminal_width = 50

def print_separator() -> None: print('\n'+'─'*terminal_width)

def print_header(*values:str) -> None:
    head = ' '.join(values)
    sep = '─'*max(((terminal_width - len(head)) // 2 - 1), 2)
    print(f'\n{sep} {head} {sep}\n')

def print_colon(previous_value:str, *next_values:object) -> None: print(previous_value+':', *next_values)

def print_error(*values:object) -> None: print_colon('Error', *values)
def print_warning(*values:object) -> None: print_colon('Warning', *values)

def _on_off(value:bool) -> str: return 'yes' if value else 'no'

def print_power_state(state:PowerState) -> None:
    print_header('Power source')
    print_colon('Battery present', _on_off(state.has_battery))
    print_colon('Power source', 'battery' if state.on_battery else 'AC')
    if state.percentage is not None: print_colon('Battery level', f'{state.percentage:.0f}%')
    print_colon('Warning level', state.warning_level.name.lower())

def print_profiles(active:Optional[str], profiles:List[str]) -> None:
    print_header('Power profiles')
    print_colon('Active profile', active or 'unknown')
    print_colon('Available profiles', ', '.join(profiles) if profiles else 'none')

def print_decision(condition:PowerCondition, settings:Settings) -> None:
    print_header('Decision')
    print_colon('Low battery', _on_off(condition.low_battery), f'({settings.low_battery_mode.value})')
    print_colon('Performance apps running', _on_off(condition.perf_apps_active))
    print_colon('Configured profile', condition.configured_profile)
    print_separator()

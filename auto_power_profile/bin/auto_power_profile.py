#!/usr/bin/env python3
#
# auto-power-profile - Automatic power profile switching for Linux

import os
import sys
from subprocess import run

import click

from auto_power_profile.config.config import Config, find_config_file
from auto_power_profile.config.system_settings import GnomePowerSettings
from auto_power_profile.dbus import PowerProfilesController, UPowerMonitor
from auto_power_profile.exceptions import ServiceUnavailableError
from auto_power_profile.globals import APP_NAME, SYSTEM_CONFIG_FILE, VERSION
from auto_power_profile.modules.policy import evaluate
from auto_power_profile.modules.windows import ProcessWindowEvents
from auto_power_profile.prints import print_decision, print_error, print_power_state, print_profiles, print_warning
from auto_power_profile.session import run_daemon
from auto_power_profile.tools import setup_logger


def show_status(config_path:str, system_config_file) -> None:
    conf = Config(system_config_file=system_config_file)
    conf.set_path(config_path)
    conf.set_system_settings(GnomePowerSettings.load())
    settings = conf.settings
    files = [f for f in conf.files if os.path.isfile(f)]
    print(f"\nUsing settings defined in {', '.join(files)}" if files else "\nUsing default settings")

    monitor = UPowerMonitor()
    try: monitor.connect()
    except ServiceUnavailableError as e:
        print_error(e)
        sys.exit(1)
    state = monitor.get_state()
    print_power_state(state)

    controller = PowerProfilesController()
    try:
        controller.connect()
        print_profiles(controller.active_profile, controller.list_profiles())
        drivers = controller.validate_drivers()
        if drivers.active and not drivers.has_drivers: print_warning("No system-specific platform driver is available")
    except ServiceUnavailableError as e: print_error(e)

    windows = ProcessWindowEvents()
    windows.poll()
    apps_active = any(windows.resolve_owning_app_id(w) in settings.performance_apps for w in windows.list_windows())
    print_decision(evaluate(state, apps_active, settings), settings)

    monitor.destroy()
    controller.destroy()


@click.command()
@click.option("--daemon", is_flag=True, help="Run the daemon and switch power profiles automatically")
@click.option("--status", is_flag=True, help="Show power source, power profiles and the profile that would be selected")
@click.option("--config", is_flag=False, required=False, help="Use config file at defined path")
@click.option("--debug", is_flag=True, help="Show debug output")
@click.option("--version", is_flag=True, help="Show currently installed version")
def main(daemon, status, config, debug, version):
    config_path = os.path.abspath(find_config_file(config))
    # a config file given on the command line is used on its own
    system_config_file = None if config else SYSTEM_CONFIG_FILE

    if len(sys.argv) == 1:
        print("\n" + "-" * 28 + " auto-power-profile " + "-" * 28 + "\n")
        print("Automatic power profile switching for Linux")
        print(f"\nExample usage:\n{APP_NAME} --status")
        print("\n-----\n")
        run([APP_NAME, "--help"])
    elif version:
        print(f"{APP_NAME} {VERSION}")
    elif status:
        setup_logger(debug)
        show_status(config_path, system_config_file)
    elif daemon:
        setup_logger(debug)
        run_daemon(config_path, system_config_file)
    else:
        print(f'Unrecognized option!\n\nRun: "{APP_NAME} --help" for list of available options.')


if __name__ == "__main__":
    main()

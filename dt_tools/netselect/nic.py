"""
Identify wireless interfaces with ``iw dev``.

Used when no interface is given on the command line or in the settings file.

Example::

    from dt_tools.netselect.command_runner import CommandRunner

    interface = get_default_interface(CommandRunner())

"""
from typing import List

from loguru import logger as LOGGER

from dt_tools.netselect.command_runner import CommandRunner
from dt_tools.netselect.errors import ErrorKind, NetSelectError
from dt_tools.netselect.options import WifiOptions


class _CONSTANTS:
    IW = 'iw'
    INTERFACE_TOKEN = 'Interface'


def identify_wifi_interfaces(iw_dev_output: str) -> List[str]:
    """
    Return the interface names listed in ``iw dev`` output, in listed order.
    """
    interfaces: List[str] = []
    for line in iw_dev_output.splitlines():
        tokens = line.split()
        if len(tokens) > 1 and tokens[0] == _CONSTANTS.INTERFACE_TOKEN:
            interfaces.append(tokens[-1])
    return interfaces


def get_default_interface(runner: CommandRunner) -> str:
    """
    Return the first wireless interface reported by ``iw dev``.

    Raises:
        NetSelectError: iw could not be run, or it lists no interface.
    """
    iw_dev_output = runner.run_pass_stdout(_CONSTANTS.IW, ['dev'], ErrorKind.FailedToListInterfacesWithIW,
                                           'Failed to determine interface name with `iw dev`. '
                                           'Is iw installed? Provide an interface with -i.')
    interfaces = identify_wifi_interfaces(iw_dev_output)
    if not interfaces:
        raise NetSelectError(ErrorKind.NoWifiInterfaceFound, 'No interfaces found with `iw dev`.',
                             [("STDOUT", iw_dev_output)])

    if len(interfaces) > 1:
        LOGGER.warning(f'[NOTE]: Multiple interfaces detected with `iw` ({", ".join(interfaces)}). '
                       f'Using {interfaces[0]}, specify another with -i.')
    LOGGER.debug(f'- Default interface: {interfaces[0]}')
    return interfaces[0]


def with_interface(options: WifiOptions, runner: CommandRunner) -> WifiOptions:
    """Return options unchanged if an interface is set, else a copy using the default interface."""
    if options.interface is not None:
        return options
    return options.with_overrides(interface=get_default_interface(runner))

"""
Obtain the encryption key for the selected network and write its profile.
"""
from typing import Optional

from loguru import logger as LOGGER

from dt_tools.netselect.chooser import Chooser
from dt_tools.netselect.command_runner import CommandRunner, get_command_runner
from dt_tools.netselect.models import AnnotatedWirelessNetwork, WifiConnectionType
from dt_tools.netselect.netctl_config import NetctlConfigHandler
from dt_tools.netselect.nic import with_interface
from dt_tools.netselect.options import WifiOptions

_PASSWORD_MANAGERS = (WifiConnectionType.NETCTL, WifiConnectionType.NMCLI)


def possibly_get_encryption_key(options: WifiOptions, network: AnnotatedWirelessNetwork,
                                chooser: Chooser) -> Optional[str]:
    """
    Return the key to connect to network with.

    A key given in the options is always used.  Otherwise the user is asked,
    for connection managers that take a key, when forced to, or when the
    network is encrypted and has no profile yet.
    """
    if options.given_encryption_key is not None:
        return options.given_encryption_key

    if options.connect_via not in _PASSWORD_MANAGERS:
        return None

    if options.force_ask_password or (not network.is_known and network.is_encrypted):
        LOGGER.debug(f'- Asking for the encryption key of {network.essid}')
        return chooser.prompt_for_password(network.essid)

    return None


def possibly_configure_network(options: WifiOptions, network: AnnotatedWirelessNetwork,
                               encryption_key: Optional[str] = None,
                               runner: CommandRunner = None) -> Optional[str]:
    """
    Write a netctl profile for network if one is needed.

    A profile is written when connecting with netctl and the network is unknown
    or a key was given in the options.  A key typed at a prompt never replaces
    an existing profile.

    Args:
        options (WifiOptions): Runtime options.
        network (AnnotatedWirelessNetwork): Selected network.
        encryption_key (str, optional): Key to store in the profile.
        runner (CommandRunner, optional): Used to find the default interface
            when options has none. Defaults to the runner matching options.

    Returns:
        str: Identifier of the profile written, else None.
    """
    if options.connect_via != WifiConnectionType.NETCTL:
        LOGGER.debug(f'- No profile written for {options.connect_via.value}')
        return None

    if network.is_known and options.given_encryption_key is None:
        LOGGER.debug(f'- {network.essid} already has profile {network.service_identifier}')
        return None

    options = with_interface(options, runner if runner is not None else get_command_runner(options))
    handler = NetctlConfigHandler(options.netctl_dir, dry_run=options.dry_run)
    return handler.write_wifi_config(options.interface, network, encryption_key)

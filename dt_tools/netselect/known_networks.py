"""
Resolve the networks the connection manager already has a profile for.

- **netctl**: every ESSID found in the netctl directory, mapped to its profile filename.
- **NetworkManager**: every saved connection name, mapped to the NetworkManager marker.
- **none** / **print**: nothing is known.

The map is rebuilt on each call, so a loop never acts on stale profiles.
"""
from typing import Dict, Iterator

from loguru import logger as LOGGER
from dt_tools.logger.logging_helper import logger_wraps

from dt_tools.netselect.command_runner import CommandRunner
from dt_tools.netselect.errors import ErrorKind
from dt_tools.netselect.models import ServiceIdentifier, WifiConnectionType
from dt_tools.netselect.netctl_config import NetctlConfigHandler
from dt_tools.netselect.options import WifiOptions


class KnownNetworks:
    """Read-only mapping of essid to the ServiceIdentifier of its profile."""
    def __init__(self, networks: Dict[str, ServiceIdentifier] = None):
        self._networks = dict(networks) if networks else {}

    def get(self, essid: str) -> ServiceIdentifier:
        return self._networks.get(essid)

    def __contains__(self, essid: str) -> bool:
        return essid in self._networks

    def __len__(self) -> int:
        return len(self._networks)

    def __iter__(self) -> Iterator[str]:
        return iter(self._networks)

    def __eq__(self, other) -> bool:
        return isinstance(other, KnownNetworks) and self._networks == other._networks

    def __repr__(self) -> str:
        return f'KnownNetworks({self._networks!r})'

    def as_dict(self) -> Dict[str, ServiceIdentifier]:
        return dict(self._networks)


def find_known_netctl_networks(netctl_dir: str) -> KnownNetworks:
    """
    Map the ESSID of every netctl profile to the profile filename.

    A missing directory means nothing is known.

    Raises:
        NetSelectError: A profile could not be read.
    """
    handler = NetctlConfigHandler(netctl_dir)
    if not handler.exists():
        LOGGER.debug(f'- Netctl directory {netctl_dir} not found, no known networks')
        return KnownNetworks()

    essids = handler.get_wifi_essids_and_identifiers()
    return KnownNetworks({essid: ServiceIdentifier.netctl(identifier) for essid, identifier in essids.items()})


def find_known_networkmanager_networks(runner: CommandRunner) -> KnownNetworks:
    """
    Map every saved NetworkManager connection name to the NetworkManager marker.

    Raises:
        NetSelectError: nmcli failed.
    """
    output = runner.run_pass_stdout('nmcli', ['-g', 'NAME', 'connection', 'show'],
                                    ErrorKind.FailedToListKnownNetworksWithNetworkManager,
                                    'Failed to list known networks with NetworkManager.')
    return KnownNetworks({line: ServiceIdentifier.network_manager() for line in output.splitlines() if line})


@logger_wraps(level="TRACE")
def find_known_networks(options: WifiOptions, runner: CommandRunner) -> KnownNetworks:
    """
    Resolve the known networks for options.connect_via.

    Args:
        options (WifiOptions): Runtime options.
        runner (CommandRunner): Runs nmcli for NetworkManager.

    Returns:
        KnownNetworks: Empty when dry_run or ignore_known is set.
    """
    if options.dry_run or options.ignore_known:
        LOGGER.debug('- Known networks skipped (dry run or ignore known)')
        return KnownNetworks()

    if options.connect_via == WifiConnectionType.NETCTL:
        known = find_known_netctl_networks(options.netctl_dir)
    elif options.connect_via == WifiConnectionType.NMCLI:
        known = find_known_networkmanager_networks(runner)
    else:
        known = KnownNetworks()

    LOGGER.debug(f'- {len(known)} known networks ({options.connect_via.value})')
    return known

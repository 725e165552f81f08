"""
Pick one network from the sorted/filtered list.

Policies (AutoMode) -

- **ask**: Always use the interactive chooser.
- **known_or_ask**: Strongest known network, else the interactive chooser.
- **known_or_fail**: Strongest known network, else fail.
- **first**: Strongest network.

Each network is offered to the chooser as one line::

    0) [43] Valparaiso_Guest_House 2 [OK]

The signal is shown only when present, ``O`` marks an open (unencrypted)
network and ``K`` a known one.  The index is read back from the chosen line.
"""
from typing import List

from loguru import logger as LOGGER

from dt_tools.netselect.chooser import Chooser
from dt_tools.netselect.errors import ErrorKind, NetSelectError, RefreshRequested
from dt_tools.netselect.models import AnnotatedWirelessNetwork, AutoMode
from dt_tools.netselect.networks import SortedFilteredNetworks


class _CONSTANTS:
    REFRESH = 'refresh'
    REFRESH_TOKENS = ('.', 'refresh')
    INDEX_SEPARATOR = ') '


def network_token(idx: int, network: AnnotatedWirelessNetwork) -> str:
    token = f'{idx}) '
    if network.signal_strength is not None:
        token += f'[{network.signal_strength}] '
    token += network.essid

    flags = ''
    if not network.is_encrypted:
        flags += 'O'
    if network.is_known:
        flags += 'K'
    if flags:
        token += f' [{flags}]'
    return token


def network_tokens(networks: SortedFilteredNetworks) -> List[str]:
    """Chooser lines for every network followed by the refresh entry."""
    tokens = [network_token(idx, nw) for idx, nw in enumerate(networks)]
    tokens.append(_CONSTANTS.REFRESH)
    return tokens


def parse_selected_index(line: str) -> int:
    """
    Return the index of the network named by a chosen line.

    An empty line selects the top entry.

    Raises:
        RefreshRequested: Line is '.' or 'refresh'.
        NetSelectError: Line does not start with '<index>) ' (FailedToParseSelectedLine).
    """
    line = line.strip()
    if line in _CONSTANTS.REFRESH_TOKENS:
        raise RefreshRequested()
    if line == '':
        return 0

    index_txt = line.split(_CONSTANTS.INDEX_SEPARATOR)[0]
    try:
        idx = int(index_txt)
    except ValueError:
        idx = -1
    if idx < 0:
        raise NetSelectError(ErrorKind.FailedToParseSelectedLine,
                             'Failed to parse line from selection program.',
                             [("Line", line)])
    return idx


def select_network_manually(networks: SortedFilteredNetworks, chooser: Chooser) -> AnnotatedWirelessNetwork:
    """
    Ask the user to pick a network.

    Raises:
        RefreshRequested: User asked for a rescan.
        NetSelectError: Chooser failed, or its answer matched no network.
    """
    line = chooser.prompt(chooser.title, network_tokens(networks))
    LOGGER.debug(f'- Chooser returned: {line!r}')
    idx = parse_selected_index(line)
    if idx >= len(networks):
        raise NetSelectError(ErrorKind.NoNetworksFoundMatchingSelectionResult,
                             'No networks matching selection found.',
                             [("Selected index", str(idx)), ("Networks offered", str(len(networks)))])
    return networks[idx]


def select_first_known_or_ask(networks: SortedFilteredNetworks, chooser: Chooser) -> AnnotatedWirelessNetwork:
    known = networks.first_known()
    if known is not None:
        return known
    return select_network_manually(networks, chooser)


def select_first_known_or_fail(networks: SortedFilteredNetworks) -> AnnotatedWirelessNetwork:
    known = networks.first_known()
    if known is None:
        raise NetSelectError(ErrorKind.NoKnownNetworksFound, 'No known networks found!')
    return known


def select_first(networks: SortedFilteredNetworks) -> AnnotatedWirelessNetwork:
    if networks.is_empty():
        raise NetSelectError(ErrorKind.NoNetworksFoundWhenLookingForFirst,
                             'No networks found when looking for the first network!')
    return networks[0]


def select_network(auto_mode: AutoMode, networks: SortedFilteredNetworks, chooser: Chooser) -> AnnotatedWirelessNetwork:
    """
    Apply the selection policy.

    Args:
        auto_mode (AutoMode): Selection policy.
        networks (SortedFilteredNetworks): Candidates, strongest first.
        chooser (Chooser): Used by the ask/known_or_ask policies.

    Raises:
        RefreshRequested: User asked for a rescan.
        NetSelectError: No network could be selected.

    Returns:
        AnnotatedWirelessNetwork: Selected network.
    """
    if auto_mode == AutoMode.ASK:
        selected = select_network_manually(networks, chooser)
    elif auto_mode == AutoMode.KNOWN_OR_ASK:
        selected = select_first_known_or_ask(networks, chooser)
    elif auto_mode == AutoMode.KNOWN_OR_FAIL:
        selected = select_first_known_or_fail(networks)
    else:
        selected = select_first(networks)

    LOGGER.info(f'Selected network: {selected.essid}')
    return selected

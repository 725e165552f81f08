"""
Annotate scanned networks with their known status, then sort and dedupe them.

Both steps are pure functions of their inputs.
"""
from typing import Iterable, List

from dt_tools.netselect.known_networks import KnownNetworks
from dt_tools.netselect.models import AnnotatedWirelessNetwork, WirelessNetwork


def annotate_networks(networks: Iterable[WirelessNetwork], known: KnownNetworks) -> List[AnnotatedWirelessNetwork]:
    """
    Tag each network with the ServiceIdentifier of its profile, if known.

    One output per input, same order, no deduplication.
    """
    return [AnnotatedWirelessNetwork.from_network(nw, known.get(nw.essid)) for nw in networks]


class SortedFilteredNetworks:
    """
    Networks ordered by signal strength (strongest first, unknown strength last)
    with one entry per essid, the strongest one.
    """
    def __init__(self, networks: Iterable[AnnotatedWirelessNetwork]):
        self.networks = self._sort_and_filter(networks)

    @staticmethod
    def _sort_and_filter(networks: Iterable[AnnotatedWirelessNetwork]) -> List[AnnotatedWirelessNetwork]:
        # sorted() is stable, equal strengths keep scan order
        ordered = sorted(networks,
                         key=lambda nw: (nw.signal_strength is None, -(nw.signal_strength or 0)))
        seen = set()
        result = []
        for nw in ordered:
            if nw.essid in seen:
                continue
            seen.add(nw.essid)
            result.append(nw)
        return result

    def __iter__(self):
        return iter(self.networks)

    def __len__(self) -> int:
        return len(self.networks)

    def __getitem__(self, idx: int) -> AnnotatedWirelessNetwork:
        return self.networks[idx]

    def is_empty(self) -> bool:
        return len(self.networks) == 0

    def known_networks(self) -> List[AnnotatedWirelessNetwork]:
        return [nw for nw in self.networks if nw.is_known]

    def first_known(self) -> AnnotatedWirelessNetwork:
        """Strongest known network, or None."""
        return next((nw for nw in self.networks if nw.is_known), None)


def sort_and_filter_networks(networks: Iterable[AnnotatedWirelessNetwork]) -> SortedFilteredNetworks:
    return SortedFilteredNetworks(networks)

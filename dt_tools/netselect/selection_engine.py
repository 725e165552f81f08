"""
Selection loop: gather, escalate, select.

Each pass of the loop -

1. Resolves known networks and scans, concurrently (two worker threads, both
   always joined before either result is used).
2. Parses the scan, annotates it with known status, sorts and dedupes it.
3. Escalates to a synchronous rescan (and loops) when nothing was seen, or
   when the policy needs a known network and none was seen.  Escalation
   happens at most once per run.
4. Applies the selection policy.  A refresh request from the chooser loops
   with a synchronous rescan.

The loop is bounded, exceeding LOOP_MAX passes fails with
LoopProtectionMaxExceeded.

Example::

    options = WifiOptions(interface='wlp3s0', auto_mode=AutoMode.KNOWN_OR_ASK)
    engine = SelectionEngine(options)
    network = engine.get_selected_network()

"""
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import replace
from typing import Callable, Iterator

from loguru import logger as LOGGER

from dt_tools.netselect.chooser import Chooser, get_chooser
from dt_tools.netselect.command_runner import CommandRunner, get_command_runner
from dt_tools.netselect.errors import ErrorKind, NetSelectError, RefreshRequested
from dt_tools.netselect.known_networks import KnownNetworks, find_known_networks
from dt_tools.netselect.models import (AnnotatedWirelessNetwork, AutoMode,
                                       ScanResult, SynchronousRescanType)
from dt_tools.netselect.networks import (SortedFilteredNetworks,
                                         annotate_networks,
                                         sort_and_filter_networks)
from dt_tools.netselect.options import WifiOptions
from dt_tools.netselect.scan_parser import parse_result
from dt_tools.netselect.selection import select_network
from dt_tools.netselect.wifi_scan import get_scan_contents

LOOP_MAX = 1000

KnownFunc = Callable[[WifiOptions, CommandRunner], KnownNetworks]
ScanFunc = Callable[[WifiOptions, CommandRunner], ScanResult]


def loop_check(loop_max: int = LOOP_MAX) -> Iterator[int]:
    """
    Yield pass numbers, failing once loop_max passes have been used.

    Raises:
        NetSelectError: LoopProtectionMaxExceeded.
    """
    for count in range(loop_max):
        yield count
    raise NetSelectError(ErrorKind.LoopProtectionMaxExceeded,
                         f'Loop protection: exceeded {loop_max} passes of the selection loop.')


def should_auto_retry_with_synchronous_scan(options: WifiOptions, networks: SortedFilteredNetworks) -> bool:
    """True if this pass should be discarded in favor of a synchronous rescan."""
    if options.synchronous_retry is not None:
        return False
    if networks.is_empty():
        return True
    if options.auto_mode in (AutoMode.KNOWN_OR_ASK, AutoMode.KNOWN_OR_FAIL):
        return networks.first_known() is None
    return False


class SelectionEngine:
    """
    Runs the selection loop for one set of options.

    Args:
        options (WifiOptions): Runtime options.
        runner (CommandRunner, optional): Defaults to the runner matching options.dry_run.
        chooser (Chooser, optional): Defaults to the chooser for options.selection_method.
        known_func (KnownFunc, optional): Known network resolver. Defaults to find_known_networks.
        scan_func (ScanFunc, optional): Scan acquisition. Defaults to get_scan_contents.
    """
    def __init__(self, options: WifiOptions, runner: CommandRunner = None, chooser: Chooser = None,
                 known_func: KnownFunc = None, scan_func: ScanFunc = None):
        self.options = options
        self.runner = runner if runner is not None else get_command_runner(options)
        self.chooser = chooser if chooser is not None else get_chooser(options.selection_method, self.runner)
        self._known_func = known_func if known_func is not None else find_known_networks
        self._scan_func = scan_func if scan_func is not None else get_scan_contents

    def gather_data(self, options: WifiOptions):
        """
        Resolve known networks and scan, concurrently.

        Both units are joined before any failure is raised.

        Returns:
            Tuple[KnownNetworks, ScanResult]
        """
        try:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix='netselect') as executor:
                known_future = executor.submit(self._known_func, replace(options), self.runner)
                scan_future = executor.submit(self._scan_func, replace(options), self.runner)
                wait([known_future, scan_future])
        except RuntimeError as ex:
            raise NetSelectError(ErrorKind.FailedToSpawnThread,
                                 'Failed to start worker thread.',
                                 [("Error", repr(ex))])

        return known_future.result(), scan_future.result()

    def get_sorted_networks(self, options: WifiOptions) -> SortedFilteredNetworks:
        """One gather/parse/annotate/sort pass."""
        known, scan_result = self.gather_data(options)
        parsed = parse_result(scan_result)
        return sort_and_filter_networks(annotate_networks(parsed.seen_networks, known))

    def get_selected_network(self) -> AnnotatedWirelessNetwork:
        """
        Run the loop until a network is selected.

        Raises:
            NetSelectError: Scan/resolve failed, no network could be selected,
                or the loop ran too long.

        Returns:
            AnnotatedWirelessNetwork: Selected network.
        """
        options = self.options
        for loop_pass in loop_check():
            LOGGER.debug(f'- Selection pass {loop_pass} (synchronous retry: {options.synchronous_retry})')
            networks = self.get_sorted_networks(options)

            if should_auto_retry_with_synchronous_scan(options, networks):
                LOGGER.info('No suitable networks seen, retrying with a synchronous scan...')
                options = options.with_synchronous_retry(SynchronousRescanType.AUTOMATIC)
                continue

            try:
                return select_network(options.auto_mode, networks, self.chooser)
            except RefreshRequested:
                LOGGER.info('Refresh requested, rescanning...')
                options = options.with_synchronous_retry(SynchronousRescanType.MANUALLY_REQUESTED)


def get_network_from_given_essid(options: WifiOptions, runner: CommandRunner = None,
                                 known_func: KnownFunc = None) -> AnnotatedWirelessNetwork:
    """
    Build the network for options.given_essid without scanning.

    The network is known if a profile exists for it, and treated as encrypted
    if an encryption key was given.
    """
    runner = runner if runner is not None else get_command_runner(options)
    known_func = known_func if known_func is not None else find_known_networks
    known = known_func(options, runner)
    essid = options.given_essid
    network = AnnotatedWirelessNetwork.from_essid(essid, known.get(essid),
                                                  is_encrypted=options.given_encryption_key is not None)
    LOGGER.info(f'Selected network: {network.essid}')
    return network

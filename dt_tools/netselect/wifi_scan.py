"""
Acquire raw wifi scan output.

Output is either produced by running a scan tool, or read back from a file
or stdin (useful for testing and for scans captured on another machine).

Module contains classes -

- **ScannerBase**: Abstract scanner, runs the tool and wraps its output in a ScanResult.
- **IwScanner**: ``iw``, cached dump with a synchronous busy-retry fallback.
- **WpaCliScanner**: ``wpa_cli scan_results``.
- **NmcliScanner**: ``nmcli device wifi list``.

Example::

    from dt_tools.netselect.command_runner import get_command_runner
    from dt_tools.netselect.options import WifiOptions

    options = WifiOptions(interface='wlp3s0')
    scan_result = get_scan_contents(options, get_command_runner(options))
    print(scan_result.scan_output)

"""
import sys
import time
from abc import ABC, abstractmethod
from typing import List

from loguru import logger as LOGGER

from dt_tools.netselect.command_runner import CommandRunner
from dt_tools.netselect.errors import ErrorKind, NetSelectError
from dt_tools.netselect.models import ScanMethod, ScanResult, ScanType
from dt_tools.netselect.nic import with_interface
from dt_tools.netselect.options import WifiOptions


class _CONSTANTS:
    IW = 'iw'
    WPA_CLI = 'wpa_cli'
    NMCLI = 'nmcli'
    IW_BUSY_EXIT_CODE = 240
    IW_SCAN_RETRIES = 101
    IW_RETRY_DELAY_SECS = 0.2


# ============================================================================================================================
# == Scanner Objects =========================================================================================================
class ScannerBase(ABC):
    """
    Abstract base class for scan tools.

    Args:
        options (WifiOptions): Runtime options (interface, synchronous flags).
        runner (CommandRunner): Runs the scan commands.
    """
    scan_type: ScanType = None

    def __init__(self, options: WifiOptions, runner: CommandRunner):
        self._options = options
        self._runner = runner

    @property
    def synchronous(self) -> bool:
        """True if cached results must not be used for this scan."""
        return self._options.force_synchronous_scan or self._options.synchronous_retry is not None

    @abstractmethod
    def _scan(self) -> str:
        """Run the tool and return its stdout"""
        pass

    def scan(self) -> ScanResult:
        """
        Run the scan tool.

        Raises:
            NetSelectError: Tool missing, could not be run or failed.

        Returns:
            ScanResult: Tool and raw output.
        """
        LOGGER.debug(f'- Scanning with {self.scan_type.value} (synchronous: {self.synchronous})')
        return ScanResult(self.scan_type, self._scan())


class IwScanner(ScannerBase):
    """
    Scan with ``iw``.

    The cached dump is used unless a synchronous scan is requested or the dump is
    empty.  After a cached dump a background scan is triggered so the next run
    sees fresh results.  Without an interface in the options the first one
    listed by ``iw dev`` is used.
    """
    scan_type = ScanType.IW

    def _scan(self) -> str:
        self._options = with_interface(self._options, self._runner)
        if self.synchronous:
            return self._synchronous_scan()

        output = self._runner.run_pass_stdout(_CONSTANTS.IW, [self._options.interface, 'scan', 'dump'],
                                              ErrorKind.FailedToRunIWScanDump,
                                              f'Failed to run `iw {self._options.interface} scan dump`.')
        if output.strip() == '':
            LOGGER.debug('- No cached scan results, running synchronous scan')
            return self._synchronous_scan()

        self._trigger_scan()
        return output

    def _trigger_scan(self):
        if not self._runner.run_status(_CONSTANTS.IW, [self._options.interface, 'scan', 'trigger']):
            LOGGER.debug(f'- `iw {self._options.interface} scan trigger` failed, ignored')

    def _abort_scan(self):
        if not self._runner.run_status(_CONSTANTS.IW, [self._options.interface, 'scan', 'abort']):
            LOGGER.debug(f'- `iw {self._options.interface} scan abort` failed, ignored')

    def _synchronous_scan(self) -> str:
        self._abort_scan()

        args = [self._options.interface, 'scan']
        busy_notified = False
        for _ in range(_CONSTANTS.IW_SCAN_RETRIES):
            output = self._runner.run_raw(_CONSTANTS.IW, args,
                                          ErrorKind.FailedToRunIWScanSynchronous,
                                          f'Failed to run `iw {self._options.interface} scan`.')
            if output.success:
                return output.stdout_text

            if output.returncode != _CONSTANTS.IW_BUSY_EXIT_CODE:
                raise NetSelectError(ErrorKind.IWSynchronousScanFailed,
                                     f'Failed to run synchronous scan on {self._options.interface}.',
                                     [("Command", f'iw {self._options.interface} scan'),
                                      ("Exit code", str(output.returncode)),
                                      ("STDERR", output.stderr_text)])

            if not busy_notified:
                LOGGER.info(f'- Interface {self._options.interface} is busy, retrying scan...')
                busy_notified = True
            time.sleep(_CONSTANTS.IW_RETRY_DELAY_SECS)

        raise NetSelectError(ErrorKind.IWSynchronousScanRanOutOfRetries,
                             f'Ran out of retries waiting for {self._options.interface} to stop being busy.')


class WpaCliScanner(ScannerBase):
    """Scan with ``wpa_cli``, reads the table of the last scan wpa_supplicant ran."""
    scan_type = ScanType.WPA_CLI

    def _scan(self) -> str:
        return self._runner.run_pass_stdout(_CONSTANTS.WPA_CLI, ['scan_results'],
                                            ErrorKind.FailedToScanWithWPACli,
                                            'Failed to scan with `wpa_cli scan_results`.')


class NmcliScanner(ScannerBase):
    """Scan with ``nmcli``, adding ``--rescan yes`` for synchronous scans."""
    scan_type = ScanType.NMCLI

    @classmethod
    def scan_args(cls, synchronous: bool) -> List[str]:
        args = ['--escape', 'no', '--color', 'no', '-g', 'SECURITY,SIGNAL,SSID', 'device', 'wifi', 'list']
        if synchronous:
            args.extend(['--rescan', 'yes'])
        return args

    def _scan(self) -> str:
        if self.synchronous:
            err_kind = ErrorKind.FailedToRunNmcliScanSynchronous
            err_msg = 'Failed to run synchronous scan with nmcli.'
        else:
            err_kind = ErrorKind.FailedToRunNmcliScan
            err_msg = 'Failed to scan with nmcli.'
        return self._runner.run_pass_stdout(_CONSTANTS.NMCLI, self.scan_args(self.synchronous), err_kind, err_msg)


_SCANNERS = {
    ScanType.IW: IwScanner,
    ScanType.WPA_CLI: WpaCliScanner,
    ScanType.NMCLI: NmcliScanner,
}


# ============================================================================================================================
# == Public functions ========================================================================================================
def get_scanner(options: WifiOptions, runner: CommandRunner) -> ScannerBase:
    """Return the scanner for options.scan_type."""
    return _SCANNERS[options.scan_type](options, runner)


def read_scan_file(scan_type: ScanType, scan_file: str) -> ScanResult:
    """
    Read previously captured scan output from a file.

    Raises:
        NetSelectError: File could not be read.
    """
    LOGGER.warning(f'- Scan results read from {scan_file}')
    try:
        with open(scan_file, 'r', encoding='utf-8', errors='replace') as fh:
            contents = fh.read()
    except (OSError, TypeError) as ex:
        raise NetSelectError(ErrorKind.FailedToReadScanResultsFromFile,
                             f'Failed to read scan contents from file "{scan_file}"',
                             [("OS Error", repr(ex))])
    return ScanResult(scan_type, contents)


def read_scan_stdin(scan_type: ScanType, stream=None) -> ScanResult:
    """
    Read previously captured scan output from stdin (or stream).

    Raises:
        NetSelectError: Stream could not be read.
    """
    stream = stream if stream is not None else sys.stdin
    LOGGER.warning('- Scan results read from stdin')
    try:
        contents = stream.read()
    except (OSError, ValueError) as ex:
        raise NetSelectError(ErrorKind.FailedToReadScanResultsFromStdin,
                             'Failed to read scan contents from stdin',
                             [("Error", repr(ex))])
    return ScanResult(scan_type, contents)


def get_scan_contents(options: WifiOptions, runner: CommandRunner) -> ScanResult:
    """
    Acquire scan output according to options.scan_method.

    Args:
        options (WifiOptions): Runtime options.
        runner (CommandRunner): Runs the scan tool when scanning live.

    Raises:
        NetSelectError: Scan or read failed.

    Returns:
        ScanResult: Raw scan output.
    """
    if options.scan_method == ScanMethod.FROM_FILE:
        return read_scan_file(options.scan_type, options.scan_file)
    if options.scan_method == ScanMethod.FROM_STDIN:
        return read_scan_stdin(options.scan_type)

    return get_scanner(options, runner).scan()

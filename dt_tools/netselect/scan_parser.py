"""
Parse the output of wifi scan tools into WirelessNetwork objects.

Supported tools -

- **iw** (``iw <if> scan dump`` / ``iw <if> scan``): one block per BSS.
- **wpa_cli** (``wpa_cli scan_results``): two header lines, then one tab separated line per BSS.
- **nmcli** (``nmcli -g SECURITY,SIGNAL,SSID device wifi list``): one colon separated line per BSS.

A malformed line (or iw block) never aborts the parse, it is recorded in
ParseResult.line_parse_errors and parsing continues.

Signal strengths are stored the way each tool reports them, shifted so iw and
wpa_cli share a scale:

- iw/wpa_cli: dBm + 90 (e.g. -66 dBm is stored as 24)
- nmcli: 0-100 percentage, unshifted

"""
import codecs
import re
from typing import List

from loguru import logger as LOGGER

from dt_tools.netselect.errors import ErrorKind, LineParseError, NetSelectError
from dt_tools.netselect.models import ParseResult, ScanResult, ScanType, WirelessNetwork


class _CONSTANTS:
    SIGNAL_OFFSET = 90
    IW_SSID = 'SSID: '
    IW_CAPABILITY = 'capability:'
    IW_SIGNAL = 'signal: '
    IW_PRIVACY = 'Privacy'
    WPA_FLAG = 'WPA'
    NMCLI_SEPARATOR = ':'

_IW_BSS_RE = re.compile(r'^BSS ((\w\w:){5}\w\w)')


class _LineError(Exception):
    def __init__(self, reason: LineParseError):
        super().__init__(reason.name)
        self.reason = reason


def parse_result(scan_result: ScanResult) -> ParseResult:
    """
    Parse scan output according to the tool that produced it.

    Args:
        scan_result (ScanResult): Tool and raw output.

    Raises:
        NetSelectError: Output unusable as a whole (malformed iw output,
            wpa_cli header missing, wpa_cli saw no networks).

    Returns:
        ParseResult: Parsed networks in input order and per-line failures.
    """
    if scan_result.scan_type == ScanType.IW:
        result = parse_iw_scan(scan_result.scan_output)
    elif scan_result.scan_type == ScanType.WPA_CLI:
        result = parse_wpa_cli_scan(scan_result.scan_output)
    elif scan_result.scan_type == ScanType.NMCLI:
        result = parse_nmcli_scan(scan_result.scan_output)
    else:
        raise ValueError(f'Unknown scan type: {scan_result.scan_type}')

    LOGGER.debug(f'- {scan_result.scan_type.value}: {len(result.seen_networks)} networks parsed, '
                 f'{len(result.line_parse_errors)} lines failed')
    for line, err in result.line_parse_errors:
        LOGGER.debug(f'  {err.name}: {line!r}')
    return result


# == iw =====================================================================================================================
def parse_iw_scan(output: str) -> ParseResult:
    seen_networks = []
    line_parse_errors = []
    for chunk in _break_iw_output_into_chunks(output):
        try:
            seen_networks.append(_parse_iw_chunk(chunk))
        except _LineError as le:
            line_parse_errors.append(('\n'.join(chunk), le.reason))

    return ParseResult(ScanType.IW, seen_networks, line_parse_errors)


def _break_iw_output_into_chunks(output: str) -> List[List[str]]:
    lines = [line.strip() for line in output.strip().splitlines()]
    if not lines:
        return []
    if not _IW_BSS_RE.match(lines[0]):
        raise NetSelectError(ErrorKind.MalformedIWOutput,
                             'Malformed output returned by `iw scan`. Try running it manually.',
                             [("First line", lines[0])])

    chunks = []
    chunk = []
    for line in lines:
        if _IW_BSS_RE.match(line) and chunk:
            chunks.append(chunk)
            chunk = []
        chunk.append(line)
    chunks.append(chunk)
    return chunks


def _parse_iw_chunk(chunk: List[str]) -> WirelessNetwork:
    if not chunk:
        raise _LineError(LineParseError.ZeroLengthIWChunk)

    raw_essid = next((line[len(_CONSTANTS.IW_SSID):] for line in chunk if line.startswith(_CONSTANTS.IW_SSID)), None)
    if raw_essid is None:
        # "SSID:" with nothing after it is a hidden network, the line is stripped so the space is gone
        raw_essid = '' if 'SSID:' in chunk else None
    if raw_essid is None:
        raise _LineError(LineParseError.MissingIWSSIDField)
    try:
        essid = unescape(raw_essid)
    except ValueError:
        raise _LineError(LineParseError.FailedToUnescapeSSIDField)

    capability = next((line for line in chunk if line.startswith(_CONSTANTS.IW_CAPABILITY)), None)
    if capability is None:
        raise _LineError(LineParseError.MissingIWCapabilityField)
    is_encrypted = _CONSTANTS.IW_PRIVACY in capability.split()

    bssid = chunk[0][len('BSS '):].split('(')[0].strip()

    signal_strength = None
    for line in chunk:
        if line.startswith(_CONSTANTS.IW_SIGNAL):
            value = line[len(_CONSTANTS.IW_SIGNAL):].replace(' dBm', '').split('.')[0]
            try:
                signal_strength = int(value) + _CONSTANTS.SIGNAL_OFFSET
                break
            except ValueError:
                continue

    return WirelessNetwork(essid=essid, bssid=bssid, is_encrypted=is_encrypted, signal_strength=signal_strength)


def unescape(text: str) -> str:
    """
    Decode backslash escapes (``\\x20``, ``\\n``, ``\\\\`` ...) as printed by iw and netctl.

    Escaped bytes are reassembled as UTF-8, so multi-byte names survive.

    Raises:
        ValueError: Invalid escape sequence or invalid UTF-8.
    """
    if '\\' not in text:
        return text
    decoded, _ = codecs.escape_decode(text.encode('utf-8'))
    return decoded.decode('utf-8')


# == wpa_cli ================================================================================================================
def parse_wpa_cli_scan(output: str) -> ParseResult:
    lines = output.strip().splitlines()
    if len(lines) < 2:
        raise NetSelectError(ErrorKind.WPACliHeaderMalformedOrMissing,
                             '`wpa_cli scan_results` header malformed or missing')

    seen_networks = []
    line_parse_errors = []
    for line in lines[2:]:
        try:
            seen_networks.append(_parse_wpa_line(line))
        except _LineError as le:
            line_parse_errors.append((line, le.reason))

    if not seen_networks:
        raise NetSelectError(ErrorKind.NoNetworksSeenWithWPACliScanResults,
                             'No networks seen by `sudo wpa_cli scan_results`. Are you near wireless networks? '
                             'Try running `sudo wpa_cli scan`.')

    return ParseResult(ScanType.WPA_CLI, seen_networks, line_parse_errors)


def _parse_wpa_line(line: str) -> WirelessNetwork:
    fields = line.split()
    if len(fields) < 4:
        raise _LineError(LineParseError.MissingWpaCliResultField)
    bssid, _freq, signal_level, flags = fields[:4]
    # Multiple consecutive spaces inside an essid collapse to one
    essid = ' '.join(fields[4:])

    try:
        signal_strength = int(signal_level) + _CONSTANTS.SIGNAL_OFFSET
    except ValueError:
        raise _LineError(LineParseError.FailedToParseSignalLevel)

    return WirelessNetwork(essid=essid,
                           bssid=bssid,
                           is_encrypted=_CONSTANTS.WPA_FLAG in flags,
                           signal_strength=signal_strength)


# == nmcli ==================================================================================================================
def parse_nmcli_scan(output: str) -> ParseResult:
    seen_networks = []
    line_parse_errors = []
    for line in output.strip().splitlines():
        try:
            seen_networks.append(_parse_nmcli_line(line))
        except _LineError as le:
            line_parse_errors.append((line, le.reason))

    return ParseResult(ScanType.NMCLI, seen_networks, line_parse_errors)


def _parse_nmcli_line(line: str) -> WirelessNetwork:
    tokens = line.split(_CONSTANTS.NMCLI_SEPARATOR, 2)
    if len(tokens) < 3:
        raise _LineError(LineParseError.MissingNmcliSeparator)
    security, signal_txt, essid = tokens

    try:
        signal_strength = int(signal_txt)
    except ValueError:
        signal_strength = None

    return WirelessNetwork(essid=essid, is_encrypted=len(security) > 0, signal_strength=signal_strength)

import pytest

from dt_tools.netselect.errors import ErrorKind, LineParseError, NetSelectError
from dt_tools.netselect.models import ScanResult, ScanType, WirelessNetwork
from dt_tools.netselect.scan_parser import parse_result, unescape

from conftest import sample_text


def test_iw_two_networks():
    result = parse_result(ScanResult(ScanType.IW, sample_text('iw_two_networks.txt')))

    assert result.scan_type == ScanType.IW
    assert result.line_parse_errors == []
    assert result.seen_networks == [
        WirelessNetwork(essid='Valparaiso_Guest_House 1', bssid='f4:28:53:fe:a5:d0',
                        is_encrypted=True, signal_strength=24),
        WirelessNetwork(essid='Valparaiso_Guest_House 2', bssid='68:72:51:68:73:da',
                        is_encrypted=True, signal_strength=43),
    ]


def test_iw_open_hidden_and_broken_blocks():
    result = parse_result(ScanResult(ScanType.IW, sample_text('iw_open_hidden_and_broken.txt')))

    assert result.seen_networks == [
        WirelessNetwork(essid='Free Cafe WiFi', bssid='00:11:22:33:44:55',
                        is_encrypted=False, signal_strength=10),
        WirelessNetwork(essid='', bssid='00:11:22:33:44:66', is_encrypted=True, signal_strength=19),
    ]
    assert [err for _, err in result.line_parse_errors] == [
        LineParseError.MissingIWCapabilityField,
        LineParseError.MissingIWSSIDField,
    ]
    assert result.line_parse_errors[0][0].startswith('BSS 00:11:22:33:44:77')


def test_iw_empty_output_is_empty():
    result = parse_result(ScanResult(ScanType.IW, '\n  \n'))
    assert result.seen_networks == []
    assert result.line_parse_errors == []


def test_iw_malformed_first_line():
    with pytest.raises(NetSelectError) as exc:
        parse_result(ScanResult(ScanType.IW, 'command failed: Device or resource busy (-16)\n'))
    assert exc.value.kind == ErrorKind.MalformedIWOutput


def test_iw_bad_escape_is_line_error():
    output = 'BSS 00:11:22:33:44:55(on wlan0)\n\tcapability: ESS\n\tSSID: bad\\x\n'
    result = parse_result(ScanResult(ScanType.IW, output))
    assert result.seen_networks == []
    assert result.line_parse_errors[0][1] == LineParseError.FailedToUnescapeSSIDField


def test_iw_missing_signal_is_absent():
    output = 'BSS 00:11:22:33:44:55(on wlan0)\n\tcapability: ESS Privacy\n\tSSID: Quiet\n'
    result = parse_result(ScanResult(ScanType.IW, output))
    assert result.seen_networks == [WirelessNetwork('Quiet', '00:11:22:33:44:55', True, None)]


def test_wpa_cli_two_networks():
    result = parse_result(ScanResult(ScanType.WPA_CLI, sample_text('wpa_cli_two_networks.txt')))

    assert result.line_parse_errors == []
    assert result.seen_networks == [
        WirelessNetwork(essid='Valparaiso_Guest_House 1', bssid='f4:28:53:fe:a5:d0',
                        is_encrypted=True, signal_strength=24),
        WirelessNetwork(essid='Valparaiso_Guest_House 2', bssid='68:72:51:68:73:da',
                        is_encrypted=True, signal_strength=43),
    ]


def test_wpa_cli_broken_lines_are_accounted_for():
    text = sample_text('wpa_cli_broken_lines.txt')
    result = parse_result(ScanResult(ScanType.WPA_CLI, text))

    data_lines = text.strip().splitlines()[2:]
    assert len(result.seen_networks) + len(result.line_parse_errors) == len(data_lines)
    assert result.seen_networks == [
        WirelessNetwork('Open Network', '00:11:22:33:44:55', is_encrypted=False, signal_strength=10)
    ]
    assert result.line_parse_errors == [
        ('f4:28:53:fe:a5:d0\t2437\t-66', LineParseError.MissingWpaCliResultField),
        ('f4:28:53:fe:a5:d1\t2437\t-xx\t[WPA2-PSK-CCMP][ESS]\tBroken Signal', LineParseError.FailedToParseSignalLevel),
        ('68:72:51:68:73:da\t2457', LineParseError.MissingWpaCliResultField),
    ]


def test_wpa_cli_missing_header():
    with pytest.raises(NetSelectError) as exc:
        parse_result(ScanResult(ScanType.WPA_CLI, 'bssid / frequency / signal level / flags / ssid\n'))
    assert exc.value.kind == ErrorKind.WPACliHeaderMalformedOrMissing


def test_wpa_cli_no_networks_is_failure():
    text = "Selected interface 'wlan0'\nbssid / frequency / signal level / flags / ssid\n"
    with pytest.raises(NetSelectError) as exc:
        parse_result(ScanResult(ScanType.WPA_CLI, text))
    assert exc.value.kind == ErrorKind.NoNetworksSeenWithWPACliScanResults


def test_nmcli_networks():
    text = sample_text('nmcli_networks.txt')
    result = parse_result(ScanResult(ScanType.NMCLI, text))

    assert result.seen_networks == [
        WirelessNetwork('Home Network', is_encrypted=True, signal_strength=72),
        WirelessNetwork('Coffee Shop', is_encrypted=False, signal_strength=45),
        WirelessNetwork('Lots:of:colons:lol:', is_encrypted=True, signal_strength=90),
        WirelessNetwork('No Signal', is_encrypted=True, signal_strength=None),
    ]
    assert result.line_parse_errors == [('broken line without separators', LineParseError.MissingNmcliSeparator)]
    assert len(result.seen_networks) + len(result.line_parse_errors) == len(text.strip().splitlines())


def test_nmcli_empty_output():
    assert parse_result(ScanResult(ScanType.NMCLI, '')).seen_networks == []


@pytest.mark.parametrize('raw, expected', [
    ('plain', 'plain'),
    ('Free\\x20Cafe', 'Free Cafe'),
    ('caf\\xc3\\xa9', 'café'),
    ('back\\\\slash', 'back\\slash'),
])
def test_unescape(raw, expected):
    assert unescape(raw) == expected

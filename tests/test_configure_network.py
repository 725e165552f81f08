import pytest

from dt_tools.netselect.configure_network import (possibly_configure_network,
                                                  possibly_get_encryption_key)
from dt_tools.netselect.models import (AnnotatedWirelessNetwork,
                                       ServiceIdentifier, WifiConnectionType)
from dt_tools.netselect.options import WifiOptions

from conftest import FakeChooser, FakeCommandRunner, output, sample_text

KNOWN_LOBBY = AnnotatedWirelessNetwork.from_essid('Lobby', ServiceIdentifier.netctl('kingship_lobby'),
                                                  is_encrypted=True)
NEW_LOBBY = AnnotatedWirelessNetwork.from_essid('Lobby', is_encrypted=True)
OPEN_CAFE = AnnotatedWirelessNetwork.from_essid('Free Cafe', is_encrypted=False)


def test_given_key_wins():
    chooser = FakeChooser()
    key = possibly_get_encryption_key(WifiOptions(given_encryption_key='given'), NEW_LOBBY, chooser)
    assert key == 'given'
    assert chooser.password_prompts == []


@pytest.mark.parametrize('options, network, expected', [
    (WifiOptions(), NEW_LOBBY, 'secret'),
    (WifiOptions(), KNOWN_LOBBY, None),
    (WifiOptions(), OPEN_CAFE, None),
    (WifiOptions(force_ask_password=True), KNOWN_LOBBY, 'secret'),
    (WifiOptions(connect_via=WifiConnectionType.NMCLI), NEW_LOBBY, 'secret'),
    (WifiOptions(connect_via=WifiConnectionType.NONE), NEW_LOBBY, None),
    (WifiOptions(connect_via=WifiConnectionType.PRINT, force_ask_password=True), NEW_LOBBY, None),
])
def test_encryption_key_prompting(options, network, expected):
    assert possibly_get_encryption_key(options, network, FakeChooser(password='secret')) == expected


def test_unknown_network_gets_profile(tmp_path):
    options = WifiOptions(interface='wlan0', netctl_dir=str(tmp_path))

    identifier = possibly_configure_network(options, NEW_LOBBY, 'secret')

    assert identifier == 'Lobby'
    assert "Key='secret'" in (tmp_path / 'Lobby').read_text()


def test_known_network_without_key_is_left_alone(tmp_path):
    options = WifiOptions(netctl_dir=str(tmp_path))
    assert possibly_configure_network(options, KNOWN_LOBBY, None) is None
    assert list(tmp_path.iterdir()) == []


def test_known_network_with_given_key_is_rewritten(tmp_path):
    options = WifiOptions(interface='wlan0', netctl_dir=str(tmp_path), given_encryption_key='new-key')
    assert possibly_configure_network(options, KNOWN_LOBBY, 'new-key') == 'kingship_lobby'
    assert "Key='new-key'" in (tmp_path / 'kingship_lobby').read_text()


def test_prompted_key_keeps_existing_profile(netctl_dir):
    profile = netctl_dir / 'kingship_lobby'
    before = profile.read_text()
    options = WifiOptions(interface='wlan0', netctl_dir=str(netctl_dir), force_ask_password=True)
    chooser = FakeChooser(password='typed')

    key = possibly_get_encryption_key(options, KNOWN_LOBBY, chooser)

    assert key == 'typed'
    assert possibly_configure_network(options, KNOWN_LOBBY, key) is None
    assert profile.read_text() == before


def test_missing_interface_found_with_iw_dev(tmp_path):
    runner = FakeCommandRunner({'iw dev': output(sample_text('iw_dev_one_interface.txt'))})
    options = WifiOptions(netctl_dir=str(tmp_path))

    assert possibly_configure_network(options, NEW_LOBBY, 'secret', runner) == 'Lobby'
    assert 'Interface=wlp3s0' in (tmp_path / 'Lobby').read_text()


def test_nmcli_writes_nothing(tmp_path):
    options = WifiOptions(connect_via=WifiConnectionType.NMCLI, netctl_dir=str(tmp_path))
    assert possibly_configure_network(options, NEW_LOBBY, 'secret') is None
    assert list(tmp_path.iterdir()) == []


def test_dry_run_writes_nothing(tmp_path):
    options = WifiOptions(interface='wlan0', netctl_dir=str(tmp_path), dry_run=True)
    assert possibly_configure_network(options, OPEN_CAFE) == 'Free_Cafe'
    assert list(tmp_path.iterdir()) == []

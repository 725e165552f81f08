import pytest

from dt_tools.netselect.errors import ErrorKind, NetSelectError
from dt_tools.netselect.nic import (get_default_interface,
                                   identify_wifi_interfaces, with_interface)
from dt_tools.netselect.options import WifiOptions

from conftest import FakeCommandRunner, output, sample_text


def test_identify_wifi_interfaces():
    assert identify_wifi_interfaces(sample_text('iw_dev_one_interface.txt')) == ['wlp3s0']
    assert identify_wifi_interfaces(sample_text('iw_dev_two_interfaces.txt')) == ['wlx00c0ca5a1b2c', 'wlp3s0']
    assert identify_wifi_interfaces('phy#0\n\tInterface\n') == []


def test_default_interface_from_iw_dev():
    runner = FakeCommandRunner({'iw dev': output(sample_text('iw_dev_one_interface.txt'))})
    assert get_default_interface(runner) == 'wlp3s0'
    assert runner.calls == ['iw dev']


def test_first_of_several_interfaces_is_used():
    runner = FakeCommandRunner({'iw dev': output(sample_text('iw_dev_two_interfaces.txt'))})
    assert get_default_interface(runner) == 'wlx00c0ca5a1b2c'


def test_no_interface_found():
    runner = FakeCommandRunner({'iw dev': output('phy#0\n')})
    with pytest.raises(NetSelectError) as exc:
        get_default_interface(runner)
    assert exc.value.kind == ErrorKind.NoWifiInterfaceFound


def test_iw_dev_failure():
    runner = FakeCommandRunner({'iw dev': output(returncode=1, stderr='nl80211 not found')})
    with pytest.raises(NetSelectError) as exc:
        get_default_interface(runner)
    assert exc.value.kind == ErrorKind.FailedToListInterfacesWithIW
    assert ('Command', 'iw dev') in exc.value.extra_data


def test_with_interface_keeps_given_interface():
    runner = FakeCommandRunner()
    options = WifiOptions(interface='wlan1')
    assert with_interface(options, runner) is options
    assert runner.calls == []


def test_with_interface_fills_default():
    runner = FakeCommandRunner({'iw dev': output(sample_text('iw_dev_one_interface.txt'))})
    assert with_interface(WifiOptions(), runner).interface == 'wlp3s0'
